# ============================================================================
# Upstream Feed Channel and Event Names
# ============================================================================

"""
Event naming conventions on the upstream feed:
- chat-message                          - Chat event on the subscribed channel
- pusher:connection_established         - Socket accepted, carries socket_id
- pusher:subscribe                      - Client request to join a channel
- pusher_internal:subscription_succeeded - Channel joined
- pusher:subscription_error             - Channel join refused
- pusher:ping / pusher:pong             - Keepalive
- pusher:error                          - Protocol level error
"""

CHAT_MESSAGE_EVENT = "chat-message"

PUSHER_CONNECTION_ESTABLISHED = "pusher:connection_established"
PUSHER_SUBSCRIBE = "pusher:subscribe"
PUSHER_SUBSCRIPTION_SUCCEEDED = "pusher_internal:subscription_succeeded"
PUSHER_SUBSCRIPTION_ERROR = "pusher:subscription_error"
PUSHER_PING = "pusher:ping"
PUSHER_PONG = "pusher:pong"
PUSHER_ERROR = "pusher:error"

PUSHER_PROTOCOL_VERSION = 7


def get_pusher_url(key: str, cluster: str, client: str, version: str) -> str:
    """Get the websocket URL for a Pusher application."""
    return (
        f"wss://ws-{cluster}.pusher.com:443/app/{key}"
        f"?protocol={PUSHER_PROTOCOL_VERSION}&client={client}&version={version}&flash=false"
    )
