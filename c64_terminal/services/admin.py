# ============================================================================
# Admin API - Read-only status surface and two administrative actions
# ============================================================================

import asyncio
import contextlib
import time
from collections.abc import Iterator

import structlog
import uvicorn
from fastapi import APIRouter, FastAPI

from ..core import AdminConfig
from ..models import (
    ActionResponse,
    ClientsResponse,
    RelayStatusResponse,
    RelaySummary,
    StatusResponse,
)
from .gate import ConnectionGate
from .relay import UpstreamRelay

log = structlog.get_logger()


def _now_ms() -> int:
    return int(time.time() * 1000)


def create_admin_app(gate: ConnectionGate, relay: UpstreamRelay, config: AdminConfig) -> FastAPI:
    """Build the admin FastAPI application."""
    router = APIRouter(tags=["status"])

    @router.get("/", response_model=StatusResponse)
    async def get_status() -> StatusResponse:
        return StatusResponse(
            current_time=_now_ms(),
            uptime=gate.uptime(),
            clients=gate.client_count(),
            messages=relay.message_count,
            version=config.app_version,
            pusher=RelaySummary(
                connected=relay.is_connected,
                connecting=relay.is_connecting,
                last_activity=relay.last_activity,
            ),
        )

    @router.get("/api/clients", response_model=ClientsResponse)
    async def get_clients() -> ClientsResponse:
        clients = gate.clients()
        return ClientsResponse(
            current_time=_now_ms(),
            clients_number=len(clients),
            clients=clients,
        )

    @router.get("/api/clients/reset", response_model=ActionResponse)
    async def reset_clients() -> ActionResponse:
        count = gate.disconnect_all_clients()
        log.info("Disconnected all clients on request", count=count)
        return ActionResponse(message=f"{count} clients disconnected")

    @router.get("/api/pusher/status", response_model=RelayStatusResponse)
    async def get_relay_status() -> RelayStatusResponse:
        return RelayStatusResponse(pusher=relay.status())

    @router.get("/api/pusher/reconnect", response_model=ActionResponse)
    async def reconnect_relay() -> ActionResponse:
        initiated = relay.force_reconnect()
        if initiated:
            return ActionResponse(message="Pusher reconnection initiated")
        return ActionResponse(message="Pusher already connected or connecting")

    app = FastAPI(title="C64 Terminal Server", version=config.app_version)
    app.include_router(router)
    return app


class _EmbeddedServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to the gateway process."""

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield

    def install_signal_handlers(self) -> None:
        return None


class AdminServer:
    """Runs the admin app on the gateway's event loop."""

    def __init__(self, app: FastAPI, config: AdminConfig) -> None:
        self._config = config
        self._server = _EmbeddedServer(
            uvicorn.Config(app, host=config.host, port=config.port, log_level="warning")
        )
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        self._task = asyncio.create_task(self._serve())
        log.info("Admin API listening", host=self._config.host, port=self._config.port)

    async def _serve(self) -> None:
        # uvicorn exits the process when it cannot bind
        try:
            await self._server.serve()
        except (SystemExit, OSError) as e:
            log.error(
                "Admin API failed to start",
                host=self._config.host,
                port=self._config.port,
                error=str(e),
            )

    async def stop(self) -> None:
        if not self._task:
            return
        self._server.should_exit = True
        await self._task
        self._task = None
