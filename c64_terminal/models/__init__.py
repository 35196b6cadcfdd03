# ============================================================================
# Models Module - Chat payload and status snapshots
# ============================================================================

from .chat import (
    Badge,
    ChatMessage,
    Cheer,
    CheermoteFragment,
    CheermoteInfo,
    EmoteFragment,
    EmoteInfo,
    Fragment,
    MentionFragment,
    MentionInfo,
    MessageBody,
    ParsedChatMessage,
    ReplyInfo,
    TextFragment,
)
from .parser import parse_chat_payload
from .status import (
    ActionResponse,
    ClientInfo,
    ClientsResponse,
    RelayStatus,
    RelayStatusResponse,
    RelaySummary,
    StatusResponse,
)
from .types import FragmentType, UserRole

__all__ = [
    # Types
    "FragmentType",
    "UserRole",
    # Chat
    "Badge",
    "ChatMessage",
    "Cheer",
    "CheermoteFragment",
    "CheermoteInfo",
    "EmoteFragment",
    "EmoteInfo",
    "Fragment",
    "MentionFragment",
    "MentionInfo",
    "MessageBody",
    "ParsedChatMessage",
    "ReplyInfo",
    "TextFragment",
    # Parser
    "parse_chat_payload",
    # Status
    "ActionResponse",
    "ClientInfo",
    "ClientsResponse",
    "RelayStatus",
    "RelayStatusResponse",
    "RelaySummary",
    "StatusResponse",
]
