# ============================================================================
# Logging - structlog setup and Loki shipping
# ============================================================================

"""
Console logging goes through structlog. Production instances additionally
mirror every event to Grafana Loki: events are buffered as JSON lines and
pushed in batches, grouped into one stream per log level.

Shipping is fire-and-forget. A failed push drops the batch; it never
raises into the code that logged.
"""

import asyncio
import json
import socket
import time
from collections.abc import MutableMapping
from typing import Any
from uuid import uuid4

import httpx
import structlog

from .config import LokiConfig

# Short hostname plus a random suffix, fixed for the process lifetime
INSTANCE_ID = f"{socket.gethostname()[:8]}-{uuid4().hex[:4]}"

FLUSH_INTERVAL = 1.0
MAX_BUFFER_SIZE = 100


def get_instance_id() -> str:
    """Get the identifier of this gateway instance."""
    return INSTANCE_ID


class LokiProcessor:
    """structlog processor buffering events for Loki."""

    def __init__(
        self,
        config: LokiConfig,
        instance_id: str = INSTANCE_ID,
        flush_interval: float = FLUSH_INTERVAL,
        max_buffer: int = MAX_BUFFER_SIZE,
    ) -> None:
        self._config = config
        self._instance_id = instance_id
        self._flush_interval = flush_interval
        self._max_buffer = max_buffer
        self._buffer: list[tuple[str, int, str]] = []
        self._flush_handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def __call__(
        self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        if not self.enabled:
            return event_dict

        level = str(event_dict.get("level", method_name)).lower()
        line = json.dumps({"instance": self._instance_id, **event_dict}, default=str)
        self._buffer.append((level, time.time_ns(), line))
        self._schedule_flush()
        return event_dict

    def _schedule_flush(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet; entries wait for the next flush
            return

        if len(self._buffer) >= self._max_buffer:
            self._spawn_flush(loop)
        elif self._flush_handle is None:
            self._flush_handle = loop.call_later(self._flush_interval, self._spawn_flush, loop)

    def _spawn_flush(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None
        task = loop.create_task(self.flush())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def build_payload(self, entries: list[tuple[str, int, str]]) -> dict[str, Any]:
        """Group buffered entries into one Loki stream per level."""
        streams: dict[str, list[list[str]]] = {}
        for level, timestamp_ns, line in entries:
            streams.setdefault(level, []).append([str(timestamp_ns), line])

        return {
            "streams": [
                {
                    "stream": {
                        "job": self._config.job,
                        "env": self._config.env,
                        "level": level,
                        "service_name": self._config.job,
                        "instance_id": self._instance_id,
                    },
                    "values": values,
                }
                for level, values in streams.items()
            ]
        }

    async def flush(self) -> None:
        """Push buffered entries to Loki."""
        if not self._buffer or not self.enabled:
            return

        entries, self._buffer = self._buffer, []
        payload = self.build_payload(entries)

        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                await client.post(
                    f"{self._config.url}/loki/api/v1/push",
                    json=payload,
                    auth=(self._config.user, self._config.token),
                )
        except httpx.HTTPError:
            # Logging failures must never break the gateway
            return


_loki: LokiProcessor | None = None


def configure_logging(loki_config: LokiConfig) -> LokiProcessor:
    """Configure structlog for the gateway process."""
    global _loki
    _loki = LokiProcessor(loki_config)

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _loki,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    return _loki


async def flush_logs() -> None:
    """Flush any log lines still waiting for Loki."""
    if _loki is not None:
        await _loki.flush()
