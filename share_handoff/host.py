"""Host-side pieces: activation address routing and the record reader.

The host registers the URL schemes it owns; the router is what the
extension receives as its opener. ``system_opener`` hands the address to
the platform instead, for when the host runs as a separate application.
"""

import logging
import os
import platform
import subprocess
from collections.abc import Callable
from pathlib import Path
from urllib.parse import urlsplit

from share_handoff.settings import HandoffSettings
from share_handoff.shared_defaults import SharedDefaults

logger = logging.getLogger(__name__)

UrlHandler = Callable[[str], None]


class UrlSchemeRouter:
    """Delivers activation addresses to handlers registered per scheme and host."""

    def __init__(self) -> None:
        self._handlers: dict[tuple[str, str], UrlHandler] = {}

    def register(self, scheme: str, host: str, handler: UrlHandler) -> None:
        self._handlers[(scheme.lower(), host.lower())] = handler

    def can_open(self, url: str) -> bool:
        return self._lookup(url) is not None

    def open(self, url: str) -> bool:
        """Deliver url to its handler. Returns False when no handler owns it."""
        handler = self._lookup(url)
        if handler is None:
            logger.debug(f"No handler registered for {url}")
            return False
        handler(url)
        return True

    __call__ = open

    def _lookup(self, url: str) -> UrlHandler | None:
        parts = urlsplit(url)
        return self._handlers.get((parts.scheme.lower(), (parts.hostname or "").lower()))


def get_platform_open_command(url: str) -> list[str] | None:
    """Get the command that opens a URL on this platform (None on Windows)."""
    system = platform.system()
    if system == "Darwin":
        return ["open", url]
    if system == "Windows":
        return None
    return ["xdg-open", url]


def system_opener(url: str, timeout: int = 10) -> bool:
    """Hand the activation address to the platform URL opener."""
    command = get_platform_open_command(url)
    try:
        if command is None:
            os.startfile(url)  # type: ignore[attr-defined]
            return True
        result = subprocess.run(command, capture_output=True, timeout=timeout, text=True)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning(f"Could not open {url}: {e}")
        return False

    if result.returncode != 0:
        logger.warning(f"Opener exited with {result.returncode} for {url}: {result.stderr.strip()}")
        return False
    return True


class HandoffInbox:
    """Read-only view of the handoff record for the host process."""

    def __init__(self, settings: HandoffSettings, defaults: SharedDefaults | None = None):
        self.settings = settings
        self.defaults = defaults or SharedDefaults(settings.group_identifier, settings.storage_root)

    def pending_paths(self) -> list[Path]:
        """Paths recorded by the last share, in completion order."""
        return [Path(p) for p in self.defaults.get_list(self.settings.record_key)]
