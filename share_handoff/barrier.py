"""Join primitive for fanned-out attachment loads."""

import asyncio
import logging
import threading

from share_handoff.errors import BarrierError

logger = logging.getLogger(__name__)


class CompletionBarrier:
    """Counts outstanding operations and wakes a waiter when all have resolved.

    Every ``enter()`` must be matched by exactly one ``leave()``. Once
    ``seal()`` is called no more operations may enter, and ``wait()``
    returns as soon as the count reaches zero. ``leave()`` may be called
    from any thread; the waiter is woken on the loop that created the
    barrier.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop or asyncio.get_running_loop()
        self._lock = threading.Lock()
        self._pending = 0
        self._issued = 0
        self._sealed = False
        self._drained = asyncio.Event()

    @property
    def pending(self) -> int:
        with self._lock:
            return self._pending

    @property
    def issued(self) -> int:
        """Total number of entries since creation."""
        with self._lock:
            return self._issued

    @property
    def sealed(self) -> bool:
        with self._lock:
            return self._sealed

    def enter(self) -> None:
        """Register one outstanding operation.

        Raises:
            BarrierError: If the barrier is already sealed
        """
        with self._lock:
            if self._sealed:
                raise BarrierError("Cannot enter a sealed barrier")
            self._pending += 1
            self._issued += 1

    def leave(self) -> None:
        """Mark one outstanding operation as resolved.

        Raises:
            BarrierError: If there is no outstanding operation to resolve
        """
        with self._lock:
            if self._pending == 0:
                raise BarrierError("leave() called more times than enter()")
            self._pending -= 1
            drained = self._sealed and self._pending == 0
        if drained:
            self._notify()

    def seal(self) -> None:
        """Stop accepting entries; the barrier drains once pending work resolves."""
        with self._lock:
            if self._sealed:
                return
            self._sealed = True
            drained = self._pending == 0
        logger.debug(f"Barrier sealed with {self._issued} operation(s) issued")
        if drained:
            self._notify()

    async def wait(self) -> None:
        """Wait until the barrier is sealed and every operation has resolved."""
        await self._drained.wait()

    def _notify(self) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._drained.set()
        else:
            self._loop.call_soon_threadsafe(self._drained.set)
