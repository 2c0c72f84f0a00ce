"""Handoff event system for reporting progress of a share request."""

from share_handoff.events.bus import EventBus
from share_handoff.events.schemas import AssetPersisted
from share_handoff.events.schemas import AttachmentDropped
from share_handoff.events.schemas import AttachmentSkipped
from share_handoff.events.schemas import HandoffEvent
from share_handoff.events.schemas import HostActivated
from share_handoff.events.schemas import RequestCompleted

__all__ = [
    "EventBus",
    "HandoffEvent",
    "AttachmentSkipped",
    "AttachmentDropped",
    "AssetPersisted",
    "HostActivated",
    "RequestCompleted",
]
