"""Attachment collection: fan out loads, join, then finalize."""

import asyncio
import logging

from share_handoff.activator import Activator
from share_handoff.barrier import CompletionBarrier
from share_handoff.errors import AttachmentLoadError
from share_handoff.events import AttachmentDropped
from share_handoff.events import AttachmentSkipped
from share_handoff.events import EventBus
from share_handoff.models import Attachment
from share_handoff.models import HandoffResult
from share_handoff.models import ShareRequest
from share_handoff.models import as_content
from share_handoff.store import HandoffStore

logger = logging.getLogger(__name__)


class AttachmentCollector:
    """Loads every supported attachment of a share request into the store.

    Contract:
    - handle_share_request() schedules one load per supported attachment and
      returns without waiting for them
    - each load resolves exactly once (persisted or dropped)
    - the activator is finalized exactly once, after every load resolved,
      including when no load was issued
    """

    def __init__(
        self,
        store: HandoffStore,
        activator: Activator,
        supported_type: str,
        event_bus: EventBus | None = None,
    ):
        self.store = store
        self.activator = activator
        self.supported_type = supported_type
        self.event_bus = event_bus
        self._barrier: CompletionBarrier | None = None
        self._tasks: set[asyncio.Task] = set()
        self._join_task: asyncio.Task[HandoffResult] | None = None

    def handle_share_request(self, request: ShareRequest | None) -> None:
        """Start handling a share request. Must run inside the event loop.

        Raises:
            RuntimeError: If this collector already handled a request
        """
        if self._join_task is not None:
            raise RuntimeError("A collector handles a single share request")

        barrier = CompletionBarrier()
        self._barrier = barrier

        items = request.items if request is not None else []
        for item in items:
            for attachment in item.attachments or []:
                if not attachment.has_item_conforming_to(self.supported_type):
                    logger.debug(f"Skipping attachment of type {attachment.registered_type_identifiers}")
                    self._publish(AttachmentSkipped(type_identifiers=attachment.registered_type_identifiers))
                    continue
                barrier.enter()
                task = asyncio.create_task(self._load_and_persist(attachment, barrier))
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)

        if barrier.issued:
            self.activator.begin_collecting(barrier.issued)
        logger.info(f"Collecting {barrier.issued} attachment(s) from {len(items)} item(s)")

        barrier.seal()
        self._join_task = asyncio.create_task(self._join(barrier))

    async def join(self) -> HandoffResult:
        """Wait until the request has been finalized.

        Raises:
            RuntimeError: If no request was handled yet
        """
        if self._join_task is None:
            raise RuntimeError("handle_share_request() has not been called")
        return await self._join_task

    @property
    def pending(self) -> int:
        return self._barrier.pending if self._barrier is not None else 0

    async def _load_and_persist(self, attachment: Attachment, barrier: CompletionBarrier) -> None:
        try:
            try:
                content = await attachment.load()
            except (AttachmentLoadError, OSError) as e:
                self._drop(f"load failed: {e}")
                return
            except Exception as e:
                logger.debug("Attachment loader raised unexpectedly", exc_info=True)
                self._drop(f"load failed: {e!r}")
                return

            content = as_content(content)
            if content is None:
                self._drop("load returned a malformed content reference")
                return
            if not content:
                self._drop("load returned no content")
                return

            asset = await self.store.persist(content)
            if asset is None:
                self.activator.record_failure()
        finally:
            barrier.leave()

    async def _join(self, barrier: CompletionBarrier) -> HandoffResult:
        await barrier.wait()
        return await self.activator.finalize()

    def _drop(self, reason: str) -> None:
        logger.warning(f"Dropping attachment: {reason}", extra={"event": "attachment_dropped", "reason": reason})
        self.activator.record_failure()
        self._publish(AttachmentDropped(reason=reason))

    def _publish(self, event) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event)
