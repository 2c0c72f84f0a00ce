"""Share request data model.

A share request arrives as an ordered list of input items, each carrying
attachments that have not been materialized yet. Attachments declare the
types they can provide and load their content on demand.
"""

import asyncio
import mimetypes
import os
from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import field
from datetime import UTC
from datetime import datetime
from pathlib import Path
from typing import Protocol
from typing import runtime_checkable

from pydantic import BaseModel
from pydantic import Field

from share_handoff.errors import AttachmentLoadError

# Content handed to the store: a readable local file or raw bytes
Content = Path | bytes

DEFAULT_TYPE = "application/octet-stream"


def as_content(value: object) -> Content | None:
    """Normalize a loader result to Content, or None if it is not one.

    Raw bytes and filesystem paths (``str`` or ``os.PathLike``) are accepted.
    Integers are rejected so they are never opened as file descriptors.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, (str, os.PathLike)):
        return Path(value)
    return None


def conforms_to(candidate: str, supported: str) -> bool:
    """Check whether a type identifier conforms to a supported type.

    Supports exact MIME matches and ``major/*`` wildcards, so ``image/png``
    conforms to ``image/*`` but ``text/plain`` does not.
    """
    candidate = candidate.strip().lower()
    supported = supported.strip().lower()
    if not candidate or not supported:
        return False
    if supported in ("*", "*/*"):
        return True
    if supported.endswith("/*"):
        return candidate.split("/", 1)[0] == supported[:-2]
    return candidate == supported


@runtime_checkable
class Attachment(Protocol):
    """Typed reference to content that is loaded asynchronously."""

    @property
    def registered_type_identifiers(self) -> list[str]: ...

    def has_item_conforming_to(self, type_identifier: str) -> bool: ...

    async def load(self) -> Content:
        """Materialize the content.

        Raises:
            AttachmentLoadError: If the content cannot be provided
        """
        ...


class _TypedAttachment:
    type_identifier: str

    @property
    def registered_type_identifiers(self) -> list[str]:
        return [self.type_identifier]

    def has_item_conforming_to(self, type_identifier: str) -> bool:
        return any(conforms_to(t, type_identifier) for t in self.registered_type_identifiers)


@dataclass
class FileAttachment(_TypedAttachment):
    """Attachment backed by a local file (the common share-sheet case)."""

    path: Path
    type_identifier: str = ""

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        if not self.type_identifier:
            guessed, _ = mimetypes.guess_type(self.path.name)
            self.type_identifier = guessed or DEFAULT_TYPE

    async def load(self) -> Content:
        is_file = await asyncio.to_thread(self.path.is_file)
        if not is_file:
            raise AttachmentLoadError(f"Not a readable file: {self.path}")
        return self.path


@dataclass
class DataAttachment(_TypedAttachment):
    """Attachment that already holds its raw content in memory."""

    data: bytes
    type_identifier: str = DEFAULT_TYPE

    async def load(self) -> Content:
        if not self.data:
            raise AttachmentLoadError("Attachment carries no data")
        return self.data


@dataclass
class InputItem:
    """One item of a share request."""

    attachments: list[Attachment] = field(default_factory=list)


@dataclass
class ShareRequest:
    """Incoming unit of work; lives only as long as the extension."""

    items: list[InputItem] = field(default_factory=list)

    @classmethod
    def from_paths(cls, paths: Sequence[Path | str], type_identifier: str | None = None) -> "ShareRequest":
        """Build a single-item request from local files."""
        attachments: list[Attachment] = [FileAttachment(Path(p), type_identifier or "") for p in paths]
        return cls(items=[InputItem(attachments=attachments)])


class PersistedAsset(BaseModel):
    """A materialized attachment inside the shared container."""

    path: Path = Field(description="Absolute path in shared storage")
    size: int = Field(description="Size in bytes")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = {"frozen": True}


class HandoffResult(BaseModel):
    """Outcome of one share request."""

    paths: list[str] = Field(default_factory=list, description="Recorded asset paths, in completion order")
    loads_issued: int = 0
    loads_failed: int = 0
    activated: bool = False
    activation_url: str = ""
