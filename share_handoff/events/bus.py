"""Event bus for handoff progress events."""

import logging
from collections.abc import Callable
from typing import Any

from share_handoff.events.schemas import HandoffEvent

logger = logging.getLogger(__name__)


class EventBus:
    """Simple event bus for publishing and subscribing to handoff events.

    Subscribers are called synchronously. Errors in handlers are isolated
    and logged so a failing subscriber never breaks the handoff.
    """

    def __init__(self, config: Any = None) -> None:
        self._subscribers: list[Callable[[HandoffEvent, Any], None]] = []
        self._config = config

    def subscribe(self, handler: Callable[[HandoffEvent, Any], None]) -> None:
        """Subscribe a handler to receive all handoff events.

        Args:
            handler: Callable that takes a HandoffEvent and config
        """
        self._subscribers.append(handler)

    def publish(self, event: HandoffEvent) -> None:
        """Publish an event to all subscribers.

        Args:
            event: HandoffEvent to publish
        """
        for handler in list(self._subscribers):
            try:
                handler(event, self._config)
            except Exception:
                logger.exception(f"Error in event handler {getattr(handler, '__name__', handler)!r}")
