"""Share extension lifetime: wires the collector, store and activator."""

import asyncio
import logging
from dataclasses import dataclass
from dataclasses import field

from share_handoff.activator import Activator
from share_handoff.activator import HostOpener
from share_handoff.collector import AttachmentCollector
from share_handoff.events import EventBus
from share_handoff.models import HandoffResult
from share_handoff.models import InputItem
from share_handoff.models import ShareRequest
from share_handoff.settings import HandoffSettings
from share_handoff.shared_defaults import SharedDefaults
from share_handoff.store import HandoffStore

logger = logging.getLogger(__name__)


@dataclass
class ExtensionContext:
    """What the OS hands the extension: the input items and a way to finish.

    ``complete_request`` is idempotent; only the first call counts.
    """

    input_items: list[InputItem] | None = field(default_factory=list)
    completion_count: int = 0
    completed: bool = False

    def complete_request(self) -> None:
        self.completion_count += 1
        if self.completed:
            logger.warning("complete_request() called more than once")
            return
        self.completed = True
        logger.debug("Extension request completed")


class ShareExtension:
    """One share request, from collection to host activation."""

    def __init__(
        self,
        context: ExtensionContext,
        settings: HandoffSettings,
        opener: HostOpener,
        event_bus: EventBus | None = None,
        defaults: SharedDefaults | None = None,
    ):
        """Initialize the extension.

        Args:
            context: Provides the input items and the teardown signal
            settings: Group, record key, activation address and file naming
            opener: Capability that delivers the activation address to the host
            event_bus: Optional bus receiving progress events
            defaults: Shared record store (built from settings when None)
        """
        self.context = context
        self.settings = settings
        self.event_bus = event_bus
        self.store = HandoffStore(settings, defaults=defaults, event_bus=event_bus)
        self.activator = Activator(
            settings,
            self.store,
            opener=opener,
            teardown=context.complete_request,
            event_bus=event_bus,
        )
        self.collector = AttachmentCollector(
            self.store,
            self.activator,
            supported_type=settings.supported_type,
            event_bus=event_bus,
        )

    def start(self) -> None:
        """Begin handling the context's input items without waiting."""
        request = ShareRequest(items=list(self.context.input_items or []))
        self.collector.handle_share_request(request)

    async def run(self) -> HandoffResult:
        """Handle the request and wait for activation and teardown."""
        self.start()
        return await self.collector.join()


def run_share(
    items: list[InputItem],
    settings: HandoffSettings,
    opener: HostOpener,
    event_bus: EventBus | None = None,
) -> HandoffResult:
    """Run one share request to completion on a fresh event loop."""
    context = ExtensionContext(input_items=items)
    extension = ShareExtension(context, settings, opener, event_bus=event_bus)
    return asyncio.run(extension.run())
