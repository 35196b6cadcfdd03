# ============================================================================
# Feed Client Base
# ============================================================================
"""
Common surface of the upstream feed clients.

A client reports three connection-level signals (connected, disconnected,
error) and dispatches named channel events to bound handlers. connect()
only starts a background task; the outcome arrives through the signals.
disconnect() unbinds every handler first, so tearing a client down never
feeds signals back into whoever owned it.
"""

import asyncio
from collections.abc import Callable
from enum import StrEnum
from typing import Any

import structlog

from ...core import ErrorCodes, GatewayError

log = structlog.get_logger()

SignalHandler = Callable[[], None]
ErrorHandler = Callable[[Exception], None]
EventHandler = Callable[[Any], None]


class FeedState(StrEnum):
    """Connection state as reported by the client itself."""

    INITIALIZED = "initialized"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    UNAVAILABLE = "unavailable"


class FeedClient:
    """Base class for upstream pub/sub feed clients."""

    name = "feed"

    def __init__(self) -> None:
        self.state = FeedState.INITIALIZED
        self._on_connected: SignalHandler | None = None
        self._on_disconnected: SignalHandler | None = None
        self._on_error: ErrorHandler | None = None
        self._channel: str | None = None
        self._event_handlers: dict[str, EventHandler] = {}
        self._task: asyncio.Task[None] | None = None

    @property
    def channel(self) -> str | None:
        return self._channel

    def bind(
        self,
        on_connected: SignalHandler,
        on_disconnected: SignalHandler,
        on_error: ErrorHandler,
    ) -> None:
        """Bind the connection-level signal handlers."""
        self._on_connected = on_connected
        self._on_disconnected = on_disconnected
        self._on_error = on_error

    def subscribe(self, channel: str, event: str, handler: EventHandler) -> None:
        """Subscribe to a channel and bind a handler for one of its events."""
        self._channel = channel
        self._event_handlers[event] = handler

    def unbind_all(self) -> None:
        self._on_connected = None
        self._on_disconnected = None
        self._on_error = None
        self._event_handlers.clear()

    def connect(self) -> None:
        """Start connecting in the background."""
        self.state = FeedState.CONNECTING
        self._task = asyncio.create_task(self._run_guarded())

    def disconnect(self) -> None:
        """Stop the client without signalling the owner."""
        self.unbind_all()
        if self._task and not self._task.done():
            self._task.cancel()
        self._task = None
        self.state = FeedState.DISCONNECTED

    async def _run(self) -> None:
        raise NotImplementedError

    async def _run_guarded(self) -> None:
        try:
            await self._run()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Any failure reaches the owner as an error signal
            log.exception("Feed client task failed", client=self.name)
            self._signal_error(GatewayError(ErrorCodes.FEED_CONNECT_FAILED, str(e)))

    # ------------------------------------------------------------------------
    # Signal dispatch
    # ------------------------------------------------------------------------

    def _signal_connected(self) -> None:
        self.state = FeedState.CONNECTED
        if self._on_connected:
            self._on_connected()

    def _signal_disconnected(self) -> None:
        self.state = FeedState.DISCONNECTED
        if self._on_disconnected:
            self._on_disconnected()

    def _signal_error(self, error: Exception) -> None:
        self.state = FeedState.UNAVAILABLE
        if self._on_error:
            self._on_error(error)

    def _dispatch(self, event: str, data: Any) -> None:
        handler = self._event_handlers.get(event)
        if not handler:
            log.debug("Unhandled feed event", client=self.name, event_name=event)
            return
        try:
            handler(data)
        except Exception:
            log.exception("Feed event handler error", client=self.name, event_name=event)
