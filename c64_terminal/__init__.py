# ============================================================================
# C64 Terminal Gateway Package
# ============================================================================
"""
Chat feed to Commodore 64 terminal gateway.

Structure:
    c64_terminal/
    ├── core/           # Configuration, errors, channel names, logging
    ├── models/         # Pydantic chat payload and status models
    ├── services/       # Sessions, scheduler, gate, relay, feed clients, admin
    └── app.py          # Application entry point
"""

from .app import main
from .core import (
    CHAT_MESSAGE_EVENT,
    Config,
    ErrorCodes,
    GatewayConfig,
    GatewayError,
    PusherConfig,
    RelayConfig,
    ValkeyConfig,
    get_config,
)
from .models import (
    ChatMessage,
    ClientInfo,
    FragmentType,
    ParsedChatMessage,
    RelayStatus,
    UserRole,
    parse_chat_payload,
)
from .services import (
    ConnectionGate,
    EventBridge,
    MessageFormatter,
    RelayState,
    Session,
    SessionRegistry,
    TransmissionScheduler,
    UpstreamRelay,
)

__version__ = "1.0.0"

__all__ = [
    # App
    "main",
    # Config
    "Config",
    "GatewayConfig",
    "RelayConfig",
    "PusherConfig",
    "ValkeyConfig",
    "get_config",
    "CHAT_MESSAGE_EVENT",
    # Errors
    "ErrorCodes",
    "GatewayError",
    # Models
    "ChatMessage",
    "ClientInfo",
    "FragmentType",
    "ParsedChatMessage",
    "RelayStatus",
    "UserRole",
    "parse_chat_payload",
    # Services
    "ConnectionGate",
    "EventBridge",
    "MessageFormatter",
    "RelayState",
    "Session",
    "SessionRegistry",
    "TransmissionScheduler",
    "UpstreamRelay",
]
