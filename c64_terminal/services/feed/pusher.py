# ============================================================================
# Pusher Feed Client - Pusher channels protocol over websockets
# ============================================================================

import asyncio
import json
from typing import Any

import structlog
import websockets

from ...core import ErrorCodes, GatewayError, PusherConfig, channels, get_pusher_url
from .base import FeedClient

log = structlog.get_logger()

CLIENT_NAME = "c64-terminal"
CLIENT_VERSION = "1.0.0"


class PusherFeedClient(FeedClient):
    """Subscribes to one public Pusher channel."""

    name = "pusher"

    def __init__(self, config: PusherConfig) -> None:
        super().__init__()
        self._config = config
        self._url = get_pusher_url(config.key, config.cluster, CLIENT_NAME, CLIENT_VERSION)
        self._ws: Any = None
        self.socket_id: str | None = None

    @property
    def url(self) -> str:
        return self._url

    async def _run(self) -> None:
        established = False
        try:
            async with websockets.connect(self._url) as ws:
                self._ws = ws
                async for raw in ws:
                    established = await self._handle_frame(raw) or established
        except asyncio.CancelledError:
            raise
        except websockets.ConnectionClosed as e:
            log.warning("Pusher connection closed", code=e.rcvd.code if e.rcvd else None)
            if established:
                self._signal_disconnected()
            else:
                self._signal_error(
                    GatewayError(ErrorCodes.FEED_CONNECT_FAILED, "Connection closed during handshake")
                )
            return
        except Exception as e:
            log.error("Pusher connection failed", error=str(e))
            self._signal_error(GatewayError(ErrorCodes.FEED_CONNECT_FAILED, str(e)))
            return
        finally:
            self._ws = None

        # Server closed the socket cleanly
        self._signal_disconnected()

    async def _send(self, event: str, data: dict[str, Any]) -> None:
        if self._ws is None:
            return
        await self._ws.send(json.dumps({"event": event, "data": data}))

    async def _handle_frame(self, raw: str | bytes) -> bool:
        """Handle one protocol frame. Returns True once the socket is established."""
        try:
            frame = json.loads(raw)
        except ValueError:
            log.warning("Ignoring malformed Pusher frame")
            return False
        if not isinstance(frame, dict):
            return False

        event = frame.get("event")
        data = frame.get("data")
        # Event data arrives double encoded
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError:
                pass

        match event:
            case channels.PUSHER_CONNECTION_ESTABLISHED:
                if isinstance(data, dict):
                    self.socket_id = data.get("socket_id")
                log.info("Connected to Pusher", socket_id=self.socket_id)
                self._signal_connected()
                if self._channel:
                    await self._send(channels.PUSHER_SUBSCRIBE, {"channel": self._channel})
                return True
            case channels.PUSHER_PING:
                await self._send(channels.PUSHER_PONG, {})
            case channels.PUSHER_SUBSCRIPTION_SUCCEEDED:
                log.info("Subscribed to channel", channel=frame.get("channel"))
            case channels.PUSHER_SUBSCRIPTION_ERROR:
                log.error("Channel subscription error", channel=self._channel, data=data)
            case channels.PUSHER_ERROR:
                details = data if isinstance(data, dict) else {}
                log.warning(
                    "Pusher protocol error",
                    code=details.get("code"),
                    message=details.get("message"),
                )
            case _:
                if frame.get("channel") == self._channel and isinstance(event, str):
                    self._dispatch(event, data)
        return False
