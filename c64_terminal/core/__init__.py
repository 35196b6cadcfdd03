# ============================================================================
# Core Module - Configuration, Errors, Channels, Logging
# ============================================================================

from .channels import (
    CHAT_MESSAGE_EVENT,
    PUSHER_CONNECTION_ESTABLISHED,
    PUSHER_ERROR,
    PUSHER_PING,
    PUSHER_PONG,
    PUSHER_SUBSCRIBE,
    PUSHER_SUBSCRIPTION_ERROR,
    PUSHER_SUBSCRIPTION_SUCCEEDED,
    get_pusher_url,
)
from .config import (
    AdminConfig,
    Config,
    GatewayConfig,
    LokiConfig,
    PusherConfig,
    RelayConfig,
    ValkeyConfig,
    get_config,
)
from .errors import ErrorCodes, GatewayError
from .logs import LokiProcessor, configure_logging, flush_logs, get_instance_id

__all__ = [
    # Channels
    "CHAT_MESSAGE_EVENT",
    "PUSHER_CONNECTION_ESTABLISHED",
    "PUSHER_ERROR",
    "PUSHER_PING",
    "PUSHER_PONG",
    "PUSHER_SUBSCRIBE",
    "PUSHER_SUBSCRIPTION_ERROR",
    "PUSHER_SUBSCRIPTION_SUCCEEDED",
    "get_pusher_url",
    # Config
    "Config",
    "GatewayConfig",
    "RelayConfig",
    "PusherConfig",
    "ValkeyConfig",
    "AdminConfig",
    "LokiConfig",
    "get_config",
    # Errors
    "ErrorCodes",
    "GatewayError",
    # Logging
    "LokiProcessor",
    "configure_logging",
    "flush_logs",
    "get_instance_id",
]
