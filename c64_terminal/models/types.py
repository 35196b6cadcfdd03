# ============================================================================
# Chat Enumerations
# ============================================================================

from enum import StrEnum


class FragmentType(StrEnum):
    """Kinds of message fragments in a chat payload."""

    TEXT = "text"
    EMOTE = "emote"
    CHEERMOTE = "cheermote"
    MENTION = "mention"


class UserRole(StrEnum):
    """Chatter role, highest badge wins."""

    BROADCASTER = "broadcaster"
    MODERATOR = "moderator"
    VIP = "vip"
    SUBSCRIBER = "subscriber"
    REGULAR = "regular"
