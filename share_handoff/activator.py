"""Host activation and extension teardown.

The activator runs exactly once per share request, after every attachment
load has resolved: it makes the handoff record durable, wakes the host
through its activation address, and then tells the extension context the
request is complete.
"""

import logging
from collections.abc import Callable
from enum import Enum

from share_handoff.events import EventBus
from share_handoff.events import HostActivated
from share_handoff.events import RequestCompleted
from share_handoff.models import HandoffResult
from share_handoff.settings import HandoffSettings
from share_handoff.store import HandoffStore

logger = logging.getLogger(__name__)

# Hands an activation address to whatever can open it; True if accepted
HostOpener = Callable[[str], bool]

# Signals the OS that the extension may be torn down
Teardown = Callable[[], None]


class ActivatorState(Enum):
    IDLE = "idle"
    COLLECTING = "collecting"
    FINALIZING = "finalizing"
    TERMINATED = "terminated"


def decline_opener(url: str) -> bool:
    """Opener that never reaches a host (activation silently fails)."""
    logger.debug(f"Activation declined for {url}")
    return False


class Activator:
    """Drives IDLE -> COLLECTING -> FINALIZING -> TERMINATED for one request."""

    def __init__(
        self,
        settings: HandoffSettings,
        store: HandoffStore,
        opener: HostOpener,
        teardown: Teardown,
        event_bus: EventBus | None = None,
    ):
        """Initialize the activator.

        Args:
            settings: Provides the activation address
            store: Store whose record is flushed before activation
            opener: Capability that delivers the activation address to the host
            teardown: Called exactly once when the request is complete
            event_bus: Optional bus for HostActivated / RequestCompleted
        """
        self.settings = settings
        self.store = store
        self.opener = opener
        self.teardown = teardown
        self.event_bus = event_bus
        self.state = ActivatorState.IDLE
        self.loads_issued = 0
        self.loads_failed = 0
        self._result: HandoffResult | None = None

    @property
    def result(self) -> HandoffResult | None:
        return self._result

    def begin_collecting(self, loads_issued: int) -> None:
        """Record that loads are in flight.

        Raises:
            RuntimeError: If collection already started or finalization began
        """
        if self.state is not ActivatorState.IDLE:
            raise RuntimeError(f"Cannot start collecting from state {self.state.value}")
        self.state = ActivatorState.COLLECTING
        self.loads_issued = loads_issued

    def record_failure(self) -> None:
        self.loads_failed += 1

    async def finalize(self) -> HandoffResult:
        """Flush the record, activate the host, and tear down.

        Only the first call does any work; later calls return the first result.
        """
        if self.state in (ActivatorState.FINALIZING, ActivatorState.TERMINATED):
            logger.debug(f"finalize() ignored in state {self.state.value}")
            return self._result or HandoffResult()

        self.state = ActivatorState.FINALIZING
        url = self.settings.activation_url

        record_ok = await self.store.flush()
        if record_ok:
            activated = self._activate(url)
        else:
            # The host reads the record only once woken, so activation must follow a
            # record that lists exactly the persisted assets. A failed write leaves the
            # previous share's list in place; the host stays asleep rather than read it.
            logger.error(
                "Handoff record not written; skipping host activation",
                extra={"event": "activation_skipped", "group": self.settings.group_identifier},
            )
            activated = False

        paths = self.store.paths
        self._result = HandoffResult(
            paths=paths,
            loads_issued=self.loads_issued,
            loads_failed=self.loads_failed,
            activated=activated,
            activation_url=url,
        )

        try:
            self.teardown()
        except Exception:
            logger.exception("Extension teardown raised")
        finally:
            self.state = ActivatorState.TERMINATED

        logger.info(
            f"Share request complete: {len(paths)} asset(s) recorded, "
            f"{self.loads_failed} dropped, host activated={activated}",
            extra={
                "event": "request_completed",
                "group": self.settings.group_identifier,
                "asset_count": len(paths),
                "failed_count": self.loads_failed,
            },
        )
        self._publish(RequestCompleted(asset_count=len(paths), failed_count=self.loads_failed))
        return self._result

    def _activate(self, url: str) -> bool:
        try:
            delivered = bool(self.opener(url))
        except Exception as e:
            logger.warning(f"Host opener failed for {url}: {e}")
            delivered = False

        if delivered:
            logger.info(f"Activated host via {url}", extra={"event": "host_activated", "url": url})
        else:
            logger.warning(
                f"No handler accepted activation address {url}",
                extra={"event": "host_activation_declined", "url": url},
            )
        self._publish(HostActivated(url=url, delivered=delivered))
        return delivered

    def _publish(self, event) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event)
