"""Exception types for the share handoff."""


class HandoffError(Exception):
    """Base exception for share handoff errors."""


class AttachmentLoadError(HandoffError):
    """Raised by an attachment when its content cannot be materialized."""


class BarrierError(HandoffError):
    """Raised when the completion barrier is entered or left out of turn."""


class SettingsError(HandoffError):
    """Raised when handoff settings cannot be read or are invalid."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)
