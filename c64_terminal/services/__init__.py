# ============================================================================
# Services Module - Sessions, Scheduler, Gate, Relay, Bridge, Admin
# ============================================================================

from .admin import AdminServer, create_admin_app
from .bridge import EventBridge
from .feed import (
    FeedClient,
    FeedState,
    PusherFeedClient,
    ValkeyFeedClient,
    get_feed_client_factory,
)
from .formatter import MessageFormatter, extract_text
from .gate import ConnectionGate
from .relay import RelayState, UpstreamRelay
from .scheduler import TickHandle, TransmissionScheduler
from .sessions import Session, SessionRegistry, normalize_ip, peer_address

__all__ = [
    # Sessions
    "Session",
    "SessionRegistry",
    "normalize_ip",
    "peer_address",
    # Scheduler
    "TickHandle",
    "TransmissionScheduler",
    # Gate
    "ConnectionGate",
    # Relay
    "RelayState",
    "UpstreamRelay",
    # Feed clients
    "FeedClient",
    "FeedState",
    "PusherFeedClient",
    "ValkeyFeedClient",
    "get_feed_client_factory",
    # Rendering
    "EventBridge",
    "MessageFormatter",
    "extract_text",
    # Admin
    "AdminServer",
    "create_admin_app",
]
