"""Share handoff: persist shared attachments and wake the host application."""

from share_handoff.activator import Activator
from share_handoff.activator import ActivatorState
from share_handoff.collector import AttachmentCollector
from share_handoff.extension import ExtensionContext
from share_handoff.extension import ShareExtension
from share_handoff.models import DataAttachment
from share_handoff.models import FileAttachment
from share_handoff.models import HandoffResult
from share_handoff.models import InputItem
from share_handoff.models import ShareRequest
from share_handoff.settings import HandoffSettings
from share_handoff.settings import load_settings
from share_handoff.store import HandoffStore

__all__ = [
    "Activator",
    "ActivatorState",
    "AttachmentCollector",
    "DataAttachment",
    "ExtensionContext",
    "FileAttachment",
    "HandoffResult",
    "HandoffSettings",
    "HandoffStore",
    "InputItem",
    "ShareExtension",
    "ShareRequest",
    "load_settings",
]
