# ============================================================================
# Upstream Relay - Resilient connection to the chat feed
# ============================================================================
"""
Keeps the gateway attached to the upstream chat feed.

State machine:
    DISCONNECTED -> CONNECTING -> CONNECTED -> DISCONNECTED -> ...

Recovery runs on two independent paths:
- a single-flight reconnect timer scheduled on every disconnect/error
- a periodic health check reconciling our belief with the client's own
  reported state, which catches disconnects that were never signalled

Listeners register explicitly (on_message, on_status, on_reconnecting).
Status notices are emitted on change only: "connected" every time the
feed comes up, "disconnected" only when leaving CONNECTED.
"""

import asyncio
from collections.abc import Callable
from datetime import datetime
from enum import StrEnum
from typing import Any

import structlog

from ..core import CHAT_MESSAGE_EVENT
from ..models import ChatMessage, RelayStatus, parse_chat_payload
from .feed import FeedClient, FeedState

log = structlog.get_logger()

MessageListener = Callable[[ChatMessage], None]
StatusListener = Callable[[bool], None]
ReconnectingListener = Callable[[], None]


class RelayState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class UpstreamRelay:
    """Owns the upstream feed connection for the whole process."""

    def __init__(
        self,
        client_factory: Callable[[], FeedClient],
        channel: str,
        reconnect_delay: float = 5.0,
        health_check_interval: float = 30.0,
    ) -> None:
        self._client_factory = client_factory
        self._channel = channel
        self._reconnect_delay = reconnect_delay
        self._health_check_interval = health_check_interval

        self.state = RelayState.DISCONNECTED
        self.last_activity: datetime | None = None
        self.message_count = 0

        self._client: FeedClient | None = None
        self._reconnect_timer: asyncio.TimerHandle | None = None
        self._health_task: asyncio.Task[None] | None = None

        self._message_listeners: list[MessageListener] = []
        self._status_listeners: list[StatusListener] = []
        self._reconnecting_listeners: list[ReconnectingListener] = []

    # ------------------------------------------------------------------------
    # Listener registration
    # ------------------------------------------------------------------------

    def on_message(self, listener: MessageListener) -> None:
        self._message_listeners.append(listener)

    def on_status(self, listener: StatusListener) -> None:
        self._status_listeners.append(listener)

    def on_reconnecting(self, listener: ReconnectingListener) -> None:
        self._reconnecting_listeners.append(listener)

    def _emit(self, listeners: list[Callable[..., None]], *args: Any) -> None:
        for listener in listeners:
            try:
                listener(*args)
            except Exception:
                log.exception("Relay listener error")

    # ------------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self.state is RelayState.CONNECTED

    @property
    def is_connecting(self) -> bool:
        return self.state is RelayState.CONNECTING

    @property
    def channel(self) -> str:
        return self._channel

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_timer is not None

    def status(self) -> RelayStatus:
        """Snapshot of the relay for status reporting."""
        since = None
        if self.last_activity:
            since = int((datetime.now() - self.last_activity).total_seconds() * 1000)
        return RelayStatus(
            connected=self.is_connected,
            connecting=self.is_connecting,
            last_activity=self.last_activity,
            time_since_last_activity=since,
            message_count=self.message_count,
            channel=self._channel,
        )

    # ------------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------------

    async def start(self) -> None:
        """Connect and start the health check."""
        self.connect()
        if self._health_task is None:
            self._health_task = asyncio.create_task(self._health_loop())
        log.info("Upstream relay started", channel=self._channel)

    async def close(self) -> None:
        """Disconnect and stop the health check."""
        self.disconnect()
        if self._health_task:
            self._health_task.cancel()
            try:
                await self._health_task
            except asyncio.CancelledError:
                pass
            self._health_task = None

    def connect(self) -> None:
        """Open a new feed connection unless one is up or in progress."""
        if self.state in (RelayState.CONNECTING, RelayState.CONNECTED):
            return

        # A pending reconnect is superseded by this attempt
        if self._reconnect_timer:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None

        self.state = RelayState.CONNECTING
        log.info("Connecting to upstream feed", channel=self._channel)

        try:
            self._cleanup()

            client = self._client_factory()
            self._client = client
            client.bind(
                on_connected=lambda: self._handle_connected(client),
                on_disconnected=lambda: self._handle_disconnected(client),
                on_error=lambda error: self._handle_error(client, error),
            )
            client.subscribe(
                self._channel,
                CHAT_MESSAGE_EVENT,
                lambda data: self._handle_chat(client, data),
            )
            client.connect()
        except Exception:
            log.exception("Failed to connect to upstream feed")
            self.state = RelayState.DISCONNECTED
            self._schedule_reconnect()

    def disconnect(self) -> None:
        """Drop the feed connection and any pending reconnect."""
        if self._reconnect_timer:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None
        self._cleanup()
        self.state = RelayState.DISCONNECTED

    def force_reconnect(self) -> bool:
        """Reconnect on request. Returns False if already up or connecting."""
        if self.state in (RelayState.CONNECTING, RelayState.CONNECTED):
            return False
        self.connect()
        return True

    def _cleanup(self) -> None:
        if self._client:
            self._client.disconnect()
            self._client = None

    # ------------------------------------------------------------------------
    # Client signals
    # ------------------------------------------------------------------------

    def _is_current(self, client: FeedClient) -> bool:
        return client is self._client

    def _handle_connected(self, client: FeedClient) -> None:
        if not self._is_current(client):
            return
        self.state = RelayState.CONNECTED
        self.last_activity = datetime.now()
        log.info("Connected to upstream feed", client=client.name)
        self._emit(self._status_listeners, True)

    def _handle_disconnected(self, client: FeedClient) -> None:
        if not self._is_current(client):
            return
        was_connected = self.is_connected
        self.state = RelayState.DISCONNECTED
        log.warning("Disconnected from upstream feed", client=client.name)
        if was_connected:
            self._emit(self._status_listeners, False)
        self._schedule_reconnect()

    def _handle_error(self, client: FeedClient, error: Exception) -> None:
        if not self._is_current(client):
            return
        was_connected = self.is_connected
        self.state = RelayState.DISCONNECTED
        log.error("Upstream feed error", client=client.name, error=str(error))
        if was_connected:
            self._emit(self._status_listeners, False)
        self._schedule_reconnect()

    def _handle_chat(self, client: FeedClient, data: Any) -> None:
        if not self._is_current(client):
            return
        message = parse_chat_payload(data)
        self.last_activity = datetime.now()
        self.message_count += 1
        log.debug("Received chat message", user=message.chatter_user_name)
        self._emit(self._message_listeners, message)

    # ------------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------------

    def _schedule_reconnect(self) -> None:
        if self._reconnect_timer:
            return

        log.info("Scheduling reconnection", delay=self._reconnect_delay)
        self._emit(self._reconnecting_listeners)

        loop = asyncio.get_running_loop()
        self._reconnect_timer = loop.call_later(self._reconnect_delay, self._fire_reconnect)

    def _fire_reconnect(self) -> None:
        self._reconnect_timer = None
        self.connect()

    def health_check(self) -> None:
        """Reconcile believed state with the client's reported state."""
        actual = self._client.state if self._client else None

        if actual is FeedState.CONNECTED and not self.is_connected:
            self.state = RelayState.CONNECTED
        elif actual not in (FeedState.CONNECTED, FeedState.CONNECTING) and self.is_connected:
            log.warning("Feed client reports lost connection", actual=str(actual))
            self.state = RelayState.DISCONNECTED

        if self.state is RelayState.DISCONNECTED:
            log.info("Upstream feed not connected, attempting reconnection")
            self.connect()

    async def _health_loop(self) -> None:
        while True:
            await asyncio.sleep(self._health_check_interval)
            try:
                self.health_check()
            except Exception:
                log.exception("Health check error")
