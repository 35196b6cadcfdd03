# ============================================================================
# Status Models - Snapshots reported by the admin surface
# ============================================================================

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _StatusModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ClientInfo(_StatusModel):
    """A connected terminal."""

    address: str
    open_time: datetime


class RelayStatus(_StatusModel):
    """Upstream relay state."""

    connected: bool
    connecting: bool
    last_activity: datetime | None = None
    time_since_last_activity: int | None = None  # milliseconds
    message_count: int = 0
    channel: str = ""


class RelaySummary(_StatusModel):
    connected: bool
    connecting: bool
    last_activity: datetime | None = None


class StatusResponse(_StatusModel):
    status: str = "ok"
    current_time: int
    uptime: int
    clients: int
    messages: int
    version: str
    pusher: RelaySummary


class ClientsResponse(_StatusModel):
    status: str = "ok"
    current_time: int
    clients_number: int
    clients: list[ClientInfo]


class RelayStatusResponse(_StatusModel):
    status: str = "ok"
    pusher: RelayStatus


class ActionResponse(_StatusModel):
    status: str = "ok"
    message: str
