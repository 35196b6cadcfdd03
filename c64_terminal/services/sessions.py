# ============================================================================
# Terminal Session Registry
# ============================================================================
"""
Owns the live terminal sessions and their outbound byte queues.

All mutation happens on the event loop thread. A session's queue is only
ever appended to (enqueue/broadcast) and popped from the left by the
transmission scheduler, so content is delivered strictly in order.
"""

import asyncio
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

import structlog

from ..core import ErrorCodes, GatewayError
from ..models import ClientInfo

log = structlog.get_logger()


class SchedulerHandle(Protocol):
    def cancel(self) -> None: ...


def normalize_ip(host: str) -> str:
    """Unwrap IPv4-mapped IPv6 addresses (::ffff:a.b.c.d -> a.b.c.d)."""
    if host.lower().startswith("::ffff:") and "." in host:
        return host[7:]
    return host


def peer_address(writer: asyncio.StreamWriter) -> tuple[str, str]:
    """Return the (address, ip) identity of a connection."""
    peername = writer.get_extra_info("peername") or ("", 0)
    host, port = peername[0], peername[1]
    return f"{host}:{port}", normalize_ip(host)


@dataclass
class Session:
    """An open terminal connection."""

    address: str
    ip: str
    writer: asyncio.StreamWriter = field(repr=False)
    open_time: datetime = field(default_factory=datetime.now)
    outbound_queue: deque[int] = field(default_factory=deque, repr=False)
    last_idle_notice: float = 0.0
    scheduler_handle: SchedulerHandle | None = field(default=None, repr=False)

    def write_byte(self, value: int) -> None:
        """Write one byte to the terminal."""
        if self.writer.is_closing():
            raise GatewayError(ErrorCodes.SESSION_WRITE_FAILED, f"{self.address} is closed")
        self.writer.write(bytes((value,)))

    def cancel_scheduler(self) -> None:
        if self.scheduler_handle is not None:
            self.scheduler_handle.cancel()
            self.scheduler_handle = None


class SessionRegistry:
    """Registry of live terminal sessions keyed by peer address."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._sessions: dict[str, Session] = {}
        self._clock = clock

    def add(self, writer: asyncio.StreamWriter) -> Session:
        """Register a session for a new connection."""
        address, ip = peer_address(writer)

        existing = self._sessions.get(address)
        if existing:
            log.warning("Replacing session with same address", address=address)
            existing.cancel_scheduler()

        session = Session(
            address=address,
            ip=ip,
            writer=writer,
            last_idle_notice=self._clock(),
        )
        self._sessions[address] = session
        return session

    def get(self, address: str) -> Session | None:
        """Get a session by address."""
        return self._sessions.get(address)

    def remove(self, address: str) -> None:
        """Remove a session and stop its transmission."""
        session = self._sessions.pop(address, None)
        if not session:
            return
        session.cancel_scheduler()
        log.debug("Removed session", address=address)

    def enqueue(self, address: str, data: bytes) -> None:
        """Append bytes to one session's queue."""
        session = self._sessions.get(address)
        if not session:
            return
        session.outbound_queue.extend(data)

    def broadcast(self, data: bytes) -> None:
        """Append bytes to every current session's queue."""
        for session in list(self._sessions.values()):
            session.outbound_queue.extend(data)

    def disconnect_all(self) -> int:
        """Close every connection and clear the registry."""
        count = len(self._sessions)
        for session in list(self._sessions.values()):
            try:
                session.cancel_scheduler()
                session.writer.close()
            except Exception:
                log.debug("Ignoring close error", address=session.address)
        self._sessions.clear()
        return count

    def count(self) -> int:
        """Get the number of live sessions."""
        return len(self._sessions)

    def list(self) -> list[ClientInfo]:
        """Snapshot of the live sessions for status reporting."""
        return [
            ClientInfo(address=session.address, open_time=session.open_time)
            for session in self._sessions.values()
        ]
