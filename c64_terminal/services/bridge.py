# ============================================================================
# Event Bridge - Relay events to terminal broadcasts
# ============================================================================

import structlog

from ..models import ChatMessage
from .formatter import MessageFormatter
from .relay import UpstreamRelay
from .sessions import SessionRegistry

log = structlog.get_logger()


class EventBridge:
    """Renders relay events and fans them out to every session."""

    def __init__(
        self,
        relay: UpstreamRelay,
        registry: SessionRegistry,
        formatter: MessageFormatter,
    ) -> None:
        self._relay = relay
        self._registry = registry
        self._formatter = formatter

    def attach(self) -> None:
        """Register the bridge's listeners on the relay."""
        self._relay.on_message(self.handle_chat_message)
        self._relay.on_status(self.handle_status)
        self._relay.on_reconnecting(self.handle_reconnecting)

    def handle_chat_message(self, message: ChatMessage) -> None:
        parsed = self._formatter.parse(message)
        formatted = self._formatter.format_chat(parsed)
        if not formatted:
            return
        log.info("Broadcasting message", user=parsed.user_name, clients=self._registry.count())
        self._registry.broadcast(formatted)

    def handle_status(self, connected: bool) -> None:
        self._registry.broadcast(self._formatter.status_notice(connected))

    def handle_reconnecting(self) -> None:
        self._registry.broadcast(self._formatter.reconnecting_notice())
