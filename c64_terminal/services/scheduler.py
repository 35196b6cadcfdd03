# ============================================================================
# Transmission Scheduler
# ============================================================================
"""
Drains session queues at the terminal's native speed.

A single loop ticks at a fixed cadence and services every active session
slot: one byte per session per tick. When a session has nothing queued and
has been silent past the idle threshold, the ephemeral status notice is
queued for it and drains like any other content.

Sessions own their slot through a TickHandle. Cancelling the handle (done
by SessionRegistry.remove) closes the slot immediately, so no write can
happen for a removed session even when a tick is already due.
"""

import asyncio
import time
from collections.abc import Callable

import structlog

from ..core import GatewayError
from .sessions import SessionRegistry

log = structlog.get_logger()


class TickHandle:
    """Ownership of one session's slot in the scheduler."""

    def __init__(self, scheduler: "TransmissionScheduler", address: str) -> None:
        self._scheduler = scheduler
        self.address = address
        self.cancelled = False

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        self._scheduler._release(self)


class TransmissionScheduler:
    """Fixed-rate byte transmission for all sessions."""

    def __init__(
        self,
        registry: SessionRegistry,
        idle_payload: Callable[[], bytes],
        interval: float = 0.1,
        idle_interval: float = 120.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._registry = registry
        self._idle_payload = idle_payload
        self._interval = interval
        self._idle_interval = idle_interval
        self._clock = clock
        self._slots: dict[str, TickHandle] = {}
        self._task: asyncio.Task[None] | None = None

    @property
    def active_count(self) -> int:
        return len(self._slots)

    def is_active(self, address: str) -> bool:
        return address in self._slots

    def start(self, address: str) -> TickHandle:
        """Open a transmission slot for a session."""
        previous = self._slots.get(address)
        if previous:
            previous.cancel()
        handle = TickHandle(self, address)
        self._slots[address] = handle
        return handle

    def _release(self, handle: TickHandle) -> None:
        # A superseded handle must not close its successor's slot
        if self._slots.get(handle.address) is handle:
            del self._slots[handle.address]

    def tick(self) -> None:
        """Service every active slot once."""
        for address, handle in list(self._slots.items()):
            if handle.cancelled:
                continue

            session = self._registry.get(address)
            if not session:
                self._release(handle)
                continue

            if session.outbound_queue:
                value = session.outbound_queue.popleft()
                try:
                    session.write_byte(value)
                except (GatewayError, OSError, RuntimeError):
                    log.info("Write failed, dropping session", address=address)
                    self._registry.remove(address)
                continue

            now = self._clock()
            if now - session.last_idle_notice > self._idle_interval:
                session.last_idle_notice = now
                self._registry.enqueue(address, self._idle_payload())

    async def _run(self) -> None:
        while True:
            try:
                self.tick()
            except Exception:
                log.exception("Transmission tick error")
            await asyncio.sleep(self._interval)

    def start_loop(self) -> None:
        """Start the tick loop on the running event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())
            log.info("Transmission scheduler started", interval=self._interval)

    async def stop(self) -> None:
        """Stop the tick loop and release every slot."""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        for handle in list(self._slots.values()):
            handle.cancel()
