# ============================================================================
# Configuration
# ============================================================================

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _split_ips(raw: str) -> tuple[str, ...]:
    return tuple(ip.strip() for ip in raw.split(",") if ip.strip())


@dataclass(frozen=True)
class GatewayConfig:
    """Terminal TCP server configuration.

    Timings are in seconds. The default transmission interval of 100ms
    matches the effective character rate of a C64 on a 1200 baud link.
    """

    host: str = field(default_factory=lambda: os.getenv("TCP_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("TCP_PORT", "10000")))
    allowed_ips: tuple[str, ...] = field(
        default_factory=lambda: _split_ips(os.getenv("ALLOWED_IPS", "127.0.0.1"))
    )
    transmission_interval: float = field(
        default_factory=lambda: int(os.getenv("TRANSMISSION_INTERVAL_MS", "100")) / 1000
    )
    idle_interval: float = field(
        default_factory=lambda: float(os.getenv("IDLE_NOTICE_INTERVAL_S", "120"))
    )
    welcome_delay: float = field(
        default_factory=lambda: int(os.getenv("WELCOME_DELAY_MS", "500")) / 1000
    )
    terminal_revision: str = field(
        default_factory=lambda: os.getenv("TERMINAL_REVISION", "0001")
    )
    timezone: str = field(
        default_factory=lambda: os.getenv("EPHEMERAL_TIMEZONE", "America/Los_Angeles")
    )


@dataclass(frozen=True)
class RelayConfig:
    """Upstream feed relay configuration."""

    backend: str = field(default_factory=lambda: os.getenv("FEED_BACKEND", "pusher").lower())
    reconnect_delay: float = field(
        default_factory=lambda: float(os.getenv("RECONNECT_DELAY_S", "5"))
    )
    health_check_interval: float = field(
        default_factory=lambda: float(os.getenv("HEALTH_CHECK_INTERVAL_S", "30"))
    )


@dataclass(frozen=True)
class PusherConfig:
    """Pusher websocket feed configuration."""

    key: str = field(default_factory=lambda: os.getenv("PUSHER_KEY", "1abcdc382aa1ff65c7be"))
    cluster: str = field(default_factory=lambda: os.getenv("PUSHER_CLUSTER", "us3"))
    channel: str = field(
        default_factory=lambda: os.getenv(
            "PUSHER_CHANNEL", "sschat_c2a6e2feefc3c81a79a80b557bddb84f"
        )
    )


@dataclass(frozen=True)
class ValkeyConfig:
    """Valkey/Redis pub/sub feed configuration."""

    host: str = field(default_factory=lambda: os.getenv("VALKEY_HOST", "localhost"))
    port: int = field(default_factory=lambda: int(os.getenv("VALKEY_PORT", "6379")))
    db: int = field(default_factory=lambda: int(os.getenv("VALKEY_DB", "0")))
    password: str | None = field(default_factory=lambda: os.getenv("VALKEY_PASSWORD"))
    channel: str = field(default_factory=lambda: os.getenv("FEED_CHANNEL", "chat.feed"))


@dataclass(frozen=True)
class AdminConfig:
    """HTTP status/administration surface configuration."""

    enabled: bool = field(
        default_factory=lambda: os.getenv("API_ENABLED", "true").lower() == "true"
    )
    host: str = field(default_factory=lambda: os.getenv("API_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("API_PORT", "9000")))
    app_version: str = field(default_factory=lambda: os.getenv("APP_VERSION", "0000"))


@dataclass(frozen=True)
class LokiConfig:
    """Grafana Loki log shipping configuration."""

    url: str = field(default_factory=lambda: os.getenv("LOKI_URL", ""))
    user: str = field(default_factory=lambda: os.getenv("LOKI_USER", ""))
    token: str = field(default_factory=lambda: os.getenv("LOKI_TOKEN", ""))
    job: str = field(default_factory=lambda: os.getenv("LOKI_JOB", "c64-terminal-server"))
    env: str = field(default_factory=lambda: os.getenv("APP_ENV", "development"))

    @property
    def enabled(self) -> bool:
        # Shipping only happens from production instances
        return bool(self.url and self.user and self.token) and self.env == "production"


@dataclass(frozen=True)
class Config:
    """Application configuration."""

    gateway: GatewayConfig = field(default_factory=GatewayConfig)
    relay: RelayConfig = field(default_factory=RelayConfig)
    pusher: PusherConfig = field(default_factory=PusherConfig)
    valkey: ValkeyConfig = field(default_factory=ValkeyConfig)
    admin: AdminConfig = field(default_factory=AdminConfig)
    loki: LokiConfig = field(default_factory=LokiConfig)


_config: Config | None = None


def get_config() -> Config:
    """Get application configuration (singleton)."""
    global _config
    if _config is None:
        _config = Config()
    return _config
