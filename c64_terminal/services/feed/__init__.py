# ============================================================================
# Feed Clients - Upstream pub/sub transports
# ============================================================================

from collections.abc import Callable

from ...core import Config, ErrorCodes, GatewayError
from .base import FeedClient, FeedState
from .pusher import PusherFeedClient
from .valkey import ValkeyFeedClient


def get_feed_client_factory(config: Config) -> tuple[Callable[[], FeedClient], str]:
    """Return the client factory and channel name for the configured backend."""
    match config.relay.backend:
        case "pusher":
            return (lambda: PusherFeedClient(config.pusher)), config.pusher.channel
        case "valkey":
            return (lambda: ValkeyFeedClient(config.valkey)), config.valkey.channel
        case other:
            raise GatewayError(ErrorCodes.INVALID_CONFIG, f"Unknown feed backend: {other}")


__all__ = [
    "FeedClient",
    "FeedState",
    "PusherFeedClient",
    "ValkeyFeedClient",
    "get_feed_client_factory",
]
