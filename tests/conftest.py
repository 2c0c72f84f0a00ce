"""Pytest configuration and shared fixtures for share handoff tests."""

import asyncio
from pathlib import Path

import pytest

from share_handoff.errors import AttachmentLoadError
from share_handoff.models import conforms_to
from share_handoff.settings import HandoffSettings

# Smallest valid PNG: signature + IHDR + IDAT + IEND for a 1x1 pixel
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000154a24f5d0000000049454e44ae426082"
)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep every test away from the real ~/.share-handoff."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for name in ("SHARE_HANDOFF_GROUP", "SHARE_HANDOFF_HOME", "SHARE_HANDOFF_RECORD_KEY"):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def storage_root(tmp_path) -> Path:
    return tmp_path / "groups"


@pytest.fixture
def settings(storage_root) -> HandoffSettings:
    return HandoffSettings(group_identifier="group.test.handoff", storage_root=storage_root)


@pytest.fixture
def image_files(tmp_path) -> list[Path]:
    """Three distinct image files to share."""
    source_dir = tmp_path / "camera-roll"
    source_dir.mkdir()
    files = []
    for index, name in enumerate(["beach.png", "cat.jpg", "receipt.png"]):
        path = source_dir / name
        path.write_bytes(PNG_BYTES + bytes([index]) * (index + 1))
        files.append(path)
    return files


class GatedAttachment:
    """Image attachment whose load completes only when the test releases it."""

    def __init__(self, content, type_identifier: str = "image/png", fail: bool = False):
        self.content = content
        self.type_identifier = type_identifier
        self.fail = fail
        self.release = asyncio.Event()
        self.started = False
        self.finished = False

    @property
    def registered_type_identifiers(self) -> list[str]:
        return [self.type_identifier]

    def has_item_conforming_to(self, type_identifier: str) -> bool:
        return conforms_to(self.type_identifier, type_identifier)

    async def load(self):
        self.started = True
        await self.release.wait()
        self.finished = True
        if self.fail:
            raise AttachmentLoadError("provider reported an error")
        return self.content


@pytest.fixture
def gated_attachment():
    """Factory for GatedAttachment instances."""
    return GatedAttachment
