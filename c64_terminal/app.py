# ============================================================================
# C64 Terminal Gateway Application
# ============================================================================

import asyncio
import signal
from dataclasses import dataclass

import structlog

from .core import Config, configure_logging, flush_logs, get_config, get_instance_id
from .services import (
    AdminServer,
    ConnectionGate,
    EventBridge,
    MessageFormatter,
    SessionRegistry,
    TransmissionScheduler,
    UpstreamRelay,
    create_admin_app,
    get_feed_client_factory,
)

configure_logging(get_config().loki)

log = structlog.get_logger()


@dataclass
class Runtime:
    """Running components, owned by the composition root."""

    registry: SessionRegistry
    scheduler: TransmissionScheduler
    relay: UpstreamRelay
    bridge: EventBridge
    gate: ConnectionGate
    admin: AdminServer | None = None


_shutdown_event: asyncio.Event | None = None
_runtime: Runtime | None = None


def build_runtime(config: Config) -> Runtime:
    """Wire the gateway components together."""
    formatter = MessageFormatter(
        revision=config.gateway.terminal_revision,
        timezone=config.gateway.timezone,
    )
    registry = SessionRegistry()
    scheduler = TransmissionScheduler(
        registry,
        formatter.ephemeral,
        interval=config.gateway.transmission_interval,
        idle_interval=config.gateway.idle_interval,
    )

    client_factory, channel = get_feed_client_factory(config)
    relay = UpstreamRelay(
        client_factory,
        channel,
        reconnect_delay=config.relay.reconnect_delay,
        health_check_interval=config.relay.health_check_interval,
    )

    bridge = EventBridge(relay, registry, formatter)
    bridge.attach()

    gate = ConnectionGate(config.gateway, registry, scheduler, relay, formatter)

    admin = None
    if config.admin.enabled:
        admin = AdminServer(create_admin_app(gate, relay, config.admin), config.admin)

    return Runtime(
        registry=registry,
        scheduler=scheduler,
        relay=relay,
        bridge=bridge,
        gate=gate,
        admin=admin,
    )


async def shutdown(sig: signal.Signals | None = None) -> None:
    """Graceful shutdown handler."""
    global _runtime
    if sig:
        log.info("Received shutdown signal", signal=sig.name)
    else:
        log.info("Shutting down")

    runtime = _runtime
    _runtime = None
    if runtime:
        await runtime.gate.stop()
        await runtime.relay.close()
        await runtime.scheduler.stop()
        if runtime.admin:
            await runtime.admin.stop()

    log.info("Shutdown complete")
    await flush_logs()

    # Signal main loop to exit
    if _shutdown_event:
        _shutdown_event.set()


async def async_main() -> None:
    """Async main entry point."""
    global _shutdown_event, _runtime
    _shutdown_event = asyncio.Event()

    config = get_config()

    log.info(
        "Starting C64 terminal gateway",
        instance=get_instance_id(),
        tcp_port=config.gateway.port,
        api_port=config.admin.port if config.admin.enabled else None,
        feed_backend=config.relay.backend,
    )

    runtime = build_runtime(config)
    _runtime = runtime

    await runtime.relay.start()
    runtime.scheduler.start_loop()
    await runtime.gate.start()
    if runtime.admin:
        await runtime.admin.start()

    # Setup signal handlers
    loop = asyncio.get_running_loop()

    def handle_signal(sig: signal.Signals) -> None:
        asyncio.create_task(shutdown(sig))

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, handle_signal, sig)

    log.info("Gateway ready, waiting for terminals...")

    # Keep running until shutdown
    await _shutdown_event.wait()


def main() -> None:
    """Main entry point."""
    try:
        asyncio.run(async_main())
    except KeyboardInterrupt:
        asyncio.run(shutdown())


if __name__ == "__main__":
    main()
