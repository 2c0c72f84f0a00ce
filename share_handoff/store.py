"""Handoff store: materializes attachments into the shared container.

Each successfully loaded attachment is copied under a freshly generated
name, its path appended to an ordered list, and the complete list written
to the shared record, replacing whatever an earlier share left there.
"""

import asyncio
import contextlib
import logging
import shutil
import uuid
from pathlib import Path

from share_handoff.events import AssetPersisted
from share_handoff.events import AttachmentDropped
from share_handoff.events import EventBus
from share_handoff.models import Content
from share_handoff.models import PersistedAsset
from share_handoff.paths import ensure_container
from share_handoff.settings import HandoffSettings
from share_handoff.shared_defaults import SharedDefaults

logger = logging.getLogger(__name__)


class HandoffStore:
    """
    Persists loaded attachments for the host process.

    Contract:
    - Inputs: content (local Path or raw bytes) per loaded attachment
    - Outputs: PersistedAsset, or None when the copy failed
    - Side Effects: files in the shared container, full overwrite of the
      handoff record after every successful persist
    - Errors: none raised; copy and record failures are logged and dropped
    """

    def __init__(
        self,
        settings: HandoffSettings,
        defaults: SharedDefaults | None = None,
        event_bus: EventBus | None = None,
    ):
        self.settings = settings
        self.container = ensure_container(settings.group_identifier, settings.storage_root)
        self.defaults = defaults or SharedDefaults(settings.group_identifier, settings.storage_root)
        self.event_bus = event_bus
        self._paths: list[str] = []
        self._lock = asyncio.Lock()

    @property
    def paths(self) -> list[str]:
        """Recorded paths in completion order (copy)."""
        return list(self._paths)

    def generate_name(self) -> str:
        """Unique asset file name, e.g. ``shared_<UUID>.jpg``."""
        return f"{self.settings.file_prefix}{str(uuid.uuid4()).upper()}{self.settings.file_extension}"

    async def persist(self, content: Content) -> PersistedAsset | None:
        """Copy content into shared storage and record its path.

        Args:
            content: Local file to copy, or raw bytes to write

        Returns:
            The persisted asset, or None if it was dropped
        """
        destination = self.container / self.generate_name()
        try:
            size = await asyncio.to_thread(_materialize, content, destination)
        except (OSError, TypeError) as e:
            logger.warning(
                f"Failed to copy attachment into shared storage: {e}",
                extra={"event": "asset_copy_failed", "group": self.settings.group_identifier},
            )
            self._publish(AttachmentDropped(reason=f"copy failed: {e}"))
            return None

        destination = destination.resolve()
        asset = PersistedAsset(path=destination, size=size)
        async with self._lock:
            self._paths.append(str(destination))
            await self._write_record()

        logger.info(
            f"Persisted shared asset {destination.name} ({size} bytes)",
            extra={"event": "asset_persisted", "group": self.settings.group_identifier, "size": size},
        )
        self._publish(AssetPersisted(path=str(destination), size=size))
        return asset

    async def flush(self) -> bool:
        """Write the full accumulated list to the shared record.

        Returns:
            True if the record now matches the in-memory list
        """
        async with self._lock:
            return await self._write_record()

    async def _write_record(self) -> bool:
        snapshot = list(self._paths)
        try:
            await asyncio.to_thread(self.defaults.set, self.settings.record_key, snapshot)
        except OSError as e:
            logger.error(
                f"Failed to write handoff record '{self.settings.record_key}': {e}",
                extra={"event": "record_write_failed", "group": self.settings.group_identifier},
            )
            return False
        return True

    def _publish(self, event) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event)


def _materialize(content: Content, destination: Path) -> int:
    """Write content to a new file, never replacing an existing one.

    Returns:
        Number of bytes written

    Raises:
        OSError: If the source cannot be read or the destination written
        TypeError: If content is neither bytes nor a Path
    """
    if not isinstance(content, (bytes, Path)):
        raise TypeError(f"Unsupported content reference: {type(content).__name__}")
    try:
        with open(destination, "xb") as dst:
            if isinstance(content, bytes):
                dst.write(content)
            else:
                with open(content, "rb") as src:
                    shutil.copyfileobj(src, dst)
    except FileExistsError:
        # Name collision: leave the existing file alone
        raise
    except OSError:
        with contextlib.suppress(OSError):
            destination.unlink()
        raise
    return destination.stat().st_size
