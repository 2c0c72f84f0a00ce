"""Shared container path policy.

Both the extension and the host process resolve the same directory for a
group identifier. Everything that crosses the process boundary lives there:
persisted assets at the top level and the key/value record under
``Preferences/``.
"""

import logging
import os
import stat
from pathlib import Path

logger = logging.getLogger(__name__)

APP_DIR_NAME = ".share-handoff"
PREFERENCES_DIR = "Preferences"

_CONTAINER_PERMS = stat.S_IRWXU


def get_app_dir() -> Path:
    """Get the per-user application directory (~/.share-handoff)."""
    return Path.home() / APP_DIR_NAME


def get_default_storage_root() -> Path:
    """Get the directory that holds one container per group identifier.

    ``SHARE_HANDOFF_HOME`` overrides the default ``~/.share-handoff/groups``.
    """
    override = os.environ.get("SHARE_HANDOFF_HOME")
    if override:
        return Path(override).expanduser().resolve()
    return get_app_dir() / "groups"


def get_default_settings_path() -> Path:
    return get_app_dir() / "settings.yaml"


def validate_group_identifier(group_identifier: str) -> str:
    """Reject identifiers that would escape the storage root.

    Raises:
        ValueError: If the identifier is empty or contains path separators
    """
    if not group_identifier or not group_identifier.strip():
        raise ValueError("group identifier cannot be empty")
    if "/" in group_identifier or "\\" in group_identifier or group_identifier in (".", ".."):
        raise ValueError(f"Invalid group identifier: {group_identifier}")
    return group_identifier


def container_path(group_identifier: str, storage_root: Path | None = None) -> Path:
    """Resolve (without creating) the shared container for a group."""
    validate_group_identifier(group_identifier)
    root = Path(storage_root).expanduser().resolve() if storage_root is not None else get_default_storage_root()
    return root / group_identifier


def ensure_container(group_identifier: str, storage_root: Path | None = None) -> Path:
    """Resolve the shared container for a group, creating it if needed.

    Args:
        group_identifier: Identifier shared by the extension and host process
        storage_root: Directory holding all group containers (defaults to
            :func:`get_default_storage_root`)

    Returns:
        Path to the container directory
    """
    container = container_path(group_identifier, storage_root)
    container.mkdir(parents=True, exist_ok=True)
    if os.name == "posix":
        os.chmod(container, _CONTAINER_PERMS)
    logger.debug(f"Shared container ready: {container}")
    return container
