"""Handoff settings loaded from settings.yaml.

Resolution order (highest first):
1. Environment overrides (SHARE_HANDOFF_GROUP, SHARE_HANDOFF_HOME,
   SHARE_HANDOFF_RECORD_KEY)
2. Settings file (explicit path, or ~/.share-handoff/settings.yaml)
3. Built-in defaults
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel
from pydantic import Field
from pydantic import ValidationError
from pydantic import field_validator

from share_handoff.errors import SettingsError
from share_handoff.paths import container_path
from share_handoff.paths import get_default_settings_path
from share_handoff.paths import validate_group_identifier

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")

_ENV_OVERRIDES = {
    "SHARE_HANDOFF_GROUP": "group_identifier",
    "SHARE_HANDOFF_HOME": "storage_root",
    "SHARE_HANDOFF_RECORD_KEY": "record_key",
}


class HandoffSettings(BaseModel):
    """Fixed identifiers shared by the extension and the host process."""

    group_identifier: str = Field(
        default="group.com.rivorya.takaslyapp",
        description="Group identifier scoping shared storage and the record",
    )
    storage_root: Path | None = Field(default=None, description="Directory holding group containers")
    record_key: str = Field(default="share_images", description="Key of the handoff record")
    url_scheme: str = Field(default="takasly", description="Custom URL scheme owned by the host")
    url_host: str = Field(default="share", description="Host part of the activation address")
    file_prefix: str = Field(default="shared_", description="Prefix of persisted asset names")
    file_extension: str = Field(default=".jpg", description="Extension of persisted asset names")
    supported_type: str = Field(default="image/*", description="Attachment type accepted for handoff")
    preparing_message: str = Field(default="Preparing share...", description="Shown while collecting")

    @field_validator("group_identifier")
    @classmethod
    def _check_group(cls, value: str) -> str:
        return validate_group_identifier(value)

    @field_validator("record_key", "url_host", "supported_type")
    @classmethod
    def _check_not_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("url_scheme")
    @classmethod
    def _check_scheme(cls, value: str) -> str:
        if not _SCHEME_RE.match(value):
            raise ValueError(f"Invalid URL scheme: {value!r}")
        return value.lower()

    @field_validator("file_extension")
    @classmethod
    def _check_extension(cls, value: str) -> str:
        if not value.startswith(".") or len(value) < 2 or "/" in value:
            raise ValueError(f"Extension must look like '.jpg', got {value!r}")
        return value

    @field_validator("storage_root", mode="before")
    @classmethod
    def _expand_root(cls, value: Any) -> Any:
        if isinstance(value, (str, Path)):
            # Recorded asset paths must stay valid from any working directory
            return Path(value).expanduser().resolve()
        return value

    @property
    def activation_url(self) -> str:
        """Address that wakes the host process (carries no payload)."""
        return f"{self.url_scheme}://{self.url_host}"

    @property
    def container(self) -> Path:
        """Shared container for the configured group (not created)."""
        return container_path(self.group_identifier, self.storage_root)


def _read_settings_file(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML: {e}", path=str(path)) from e
    except OSError as e:
        raise SettingsError(f"Cannot read settings: {e}", path=str(path)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SettingsError("Settings file must contain a mapping", path=str(path))

    # Accept both a flat file and one nested under a "handoff" section
    section = data.get("handoff", data)
    if not isinstance(section, dict):
        raise SettingsError("'handoff' section must be a mapping", path=str(path))
    return section


def load_settings(path: Path | None = None, **overrides: Any) -> HandoffSettings:
    """Load effective handoff settings.

    Args:
        path: Explicit settings file. When None, ~/.share-handoff/settings.yaml
              is used if it exists.
        **overrides: Field values that win over file and environment

    Returns:
        Validated HandoffSettings

    Raises:
        SettingsError: If the file is unreadable or any value is invalid
    """
    values: dict[str, Any] = {}

    settings_file = path if path is not None else get_default_settings_path()
    if path is not None and not path.exists():
        raise SettingsError("Settings file not found", path=str(path))
    if settings_file.exists():
        values.update(_read_settings_file(settings_file))
        logger.debug(f"Loaded settings from {settings_file}")

    for env_name, field_name in _ENV_OVERRIDES.items():
        env_value = os.environ.get(env_name)
        if env_value:
            values[field_name] = env_value

    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return HandoffSettings(**values)
    except ValidationError as e:
        raise SettingsError(str(e), path=str(settings_file) if settings_file.exists() else None) from e
