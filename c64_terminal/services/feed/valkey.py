# ============================================================================
# Valkey Feed Client - Chat events from a Valkey/Redis pub/sub channel
# ============================================================================

import asyncio
import json
from urllib.parse import quote

import redis.asyncio as redis
import structlog

from ...core import CHAT_MESSAGE_EVENT, ErrorCodes, GatewayError, ValkeyConfig
from .base import FeedClient

log = structlog.get_logger()


class ValkeyFeedClient(FeedClient):
    """Subscribes to one Valkey channel carrying chat events.

    Messages are either Pusher-style envelopes ({"event": ..., "data": ...})
    or bare chat payloads, which are dispatched as chat-message events.
    """

    name = "valkey"

    def __init__(self, config: ValkeyConfig) -> None:
        super().__init__()
        self._config = config

    @property
    def url(self) -> str:
        auth = f":{quote(self._config.password, safe='')}@" if self._config.password else ""
        return f"redis://{auth}{self._config.host}:{self._config.port}/{self._config.db}"

    async def _run(self) -> None:
        client = None
        pubsub = None
        subscribed = False
        try:
            client = redis.from_url(self.url, decode_responses=True)
            pubsub = client.pubsub()
            await client.ping()
            if self._channel:
                await pubsub.subscribe(self._channel)
            subscribed = True
            log.info(
                "Subscribed to Valkey feed",
                host=self._config.host,
                port=self._config.port,
                channel=self._channel,
            )
            self._signal_connected()

            while True:
                message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                if message and message["type"] == "message":
                    self._handle_message(message["data"])

        except asyncio.CancelledError:
            raise
        except redis.ConnectionError as e:
            if subscribed:
                log.warning("Valkey connection lost")
                self._signal_disconnected()
            else:
                log.error("Valkey connection failed", error=str(e))
                self._signal_error(GatewayError(ErrorCodes.FEED_CONNECT_FAILED, str(e)))
        except Exception as e:
            log.exception("Valkey feed error")
            code = (
                ErrorCodes.FEED_SUBSCRIPTION_FAILED if subscribed else ErrorCodes.FEED_CONNECT_FAILED
            )
            self._signal_error(GatewayError(code, str(e)))
        finally:
            if pubsub is not None:
                await pubsub.aclose()
            if client is not None:
                await client.aclose()

    def _handle_message(self, raw: str) -> None:
        try:
            payload = json.loads(raw)
        except ValueError:
            log.warning("Ignoring malformed feed message", channel=self._channel)
            return

        if isinstance(payload, dict) and isinstance(payload.get("event"), str) and "data" in payload:
            self._dispatch(payload["event"], payload["data"])
        else:
            self._dispatch(CHAT_MESSAGE_EVENT, payload)
