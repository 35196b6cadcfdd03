# ============================================================================
# Connection Gate - Raw TCP server for C64 terminals
# ============================================================================
"""
Accepts terminal connections and turns them into sessions.

The protocol is one-way: bytes coming from the terminal are read and
discarded, only so that a closed or broken socket is noticed and its
session removed.
"""

import asyncio
import socket
import time
from datetime import datetime

import structlog

from ..core import ErrorCodes, GatewayConfig
from ..models import ClientInfo
from .formatter import MessageFormatter
from .relay import UpstreamRelay
from .scheduler import TransmissionScheduler
from .sessions import Session, SessionRegistry, peer_address

log = structlog.get_logger()


class ConnectionGate:
    """TCP listener enforcing the IP allow-list."""

    def __init__(
        self,
        config: GatewayConfig,
        registry: SessionRegistry,
        scheduler: TransmissionScheduler,
        relay: UpstreamRelay,
        formatter: MessageFormatter,
    ) -> None:
        self._config = config
        self._registry = registry
        self._scheduler = scheduler
        self._relay = relay
        self._formatter = formatter
        self._allowed_ips = frozenset(config.allowed_ips)
        self._server: asyncio.Server | None = None
        self.start_time = datetime.now()
        self._started = time.monotonic()

    async def start(self) -> None:
        """Start listening for terminals."""
        self._server = await asyncio.start_server(
            self.handle_connection, self._config.host, self._config.port
        )
        self.start_time = datetime.now()
        self._started = time.monotonic()
        log.info(
            "C64 terminal server listening",
            host=self._config.host,
            port=self._config.port,
            allowed_ips=sorted(self._allowed_ips),
        )

    async def stop(self) -> None:
        """Disconnect every terminal and stop listening."""
        count = self._registry.disconnect_all()
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
        log.info("C64 terminal server stopped", disconnected=count)

    def is_allowed(self, ip: str) -> bool:
        return ip in self._allowed_ips

    async def handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        """Admit a terminal, then hold the connection until it closes."""
        address, ip = peer_address(writer)
        log.info("Terminal connected", address=address)

        if not self.is_allowed(ip):
            log.warning(
                "IP not allowed, closing connection",
                address=address,
                code=ErrorCodes.IP_NOT_ALLOWED.value,
            )
            writer.close()
            return

        self._set_nodelay(writer)
        session = self._registry.add(writer)

        # A new terminal wakes a dead feed
        if not self._relay.is_connected and not self._relay.is_connecting:
            self._relay.connect()

        loop = asyncio.get_running_loop()
        loop.call_later(self._config.welcome_delay, self._send_welcome, session)

        session.scheduler_handle = self._scheduler.start(address)

        try:
            while await reader.read(1024):
                pass
        except (ConnectionError, OSError) as e:
            log.warning("Terminal socket error", address=address, error=str(e))
        finally:
            if self._registry.get(address) is session:
                self._registry.remove(address)
            if not writer.is_closing():
                writer.close()
            log.info("Terminal disconnected", address=address)

    def _send_welcome(self, session: Session) -> None:
        if self._registry.get(session.address) is not session:
            return
        self._registry.enqueue(session.address, self._formatter.welcome())

    def _set_nodelay(self, writer: asyncio.StreamWriter) -> None:
        sock = writer.get_extra_info("socket")
        if sock is None:
            return
        try:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        except OSError:
            log.debug("Could not set TCP_NODELAY")

    # ------------------------------------------------------------------------
    # Status surface
    # ------------------------------------------------------------------------

    def client_count(self) -> int:
        return self._registry.count()

    def clients(self) -> list[ClientInfo]:
        return self._registry.list()

    def disconnect_all_clients(self) -> int:
        return self._registry.disconnect_all()

    def uptime(self) -> int:
        """Milliseconds since the server started."""
        return int((time.monotonic() - self._started) * 1000)
