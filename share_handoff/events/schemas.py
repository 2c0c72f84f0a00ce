"""Handoff event schemas published while a share request is processed."""

from typing import Literal

from pydantic import BaseModel
from pydantic import Field


class AttachmentSkipped(BaseModel):
    """Attachment filtered out because its type is not supported."""

    type: Literal["attachment_skipped"] = "attachment_skipped"
    type_identifiers: list[str] = Field(description="Types the attachment offered")


class AttachmentDropped(BaseModel):
    """Attachment whose load or copy failed; it is not retried."""

    type: Literal["attachment_dropped"] = "attachment_dropped"
    reason: str = Field(description="Why the attachment was dropped")


class AssetPersisted(BaseModel):
    """Attachment copied into shared storage and recorded."""

    type: Literal["asset_persisted"] = "asset_persisted"
    path: str = Field(description="Path of the persisted asset")
    size: int = Field(description="Size in bytes")


class HostActivated(BaseModel):
    """Activation address handed to the host opener."""

    type: Literal["host_activated"] = "host_activated"
    url: str = Field(description="Activation address")
    delivered: bool = Field(description="Whether the opener accepted the address")


class RequestCompleted(BaseModel):
    """Extension finished and tore itself down."""

    type: Literal["request_completed"] = "request_completed"
    asset_count: int = Field(description="Number of recorded assets")
    failed_count: int = Field(description="Number of dropped attachments")


HandoffEvent = AttachmentSkipped | AttachmentDropped | AssetPersisted | HostActivated | RequestCompleted
