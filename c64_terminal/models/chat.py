# ============================================================================
# Chat Payload Models
# ============================================================================

"""
Models for the chat event carried on the upstream feed.

The feed is not under our control, so every field is lenient: missing or
mistyped values fall back to an empty default instead of failing
validation. Fragments are a tagged union on ``type``; unknown fragment
kinds are read as plain text.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from .types import FragmentType, UserRole

_FRAGMENT_KINDS = [kind.value for kind in FragmentType]


def _as_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _as_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return _as_str(value) or None


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _as_mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_optional_mapping(value: Any) -> dict[str, Any] | None:
    return value if isinstance(value, dict) else None


def _as_mapping_list(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _as_fragment_list(value: Any) -> list[dict[str, Any]]:
    fragments = []
    for item in _as_mapping_list(value):
        if item.get("type") not in _FRAGMENT_KINDS:
            item = {**item, "type": FragmentType.TEXT.value}
        fragments.append(item)
    return fragments


Text = Annotated[str, BeforeValidator(_as_str)]
OptionalText = Annotated[str | None, BeforeValidator(_as_optional_str)]
Count = Annotated[int, BeforeValidator(_as_int)]


class _FeedModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


# ----------------------------------------------------------------------------
# Fragments
# ----------------------------------------------------------------------------


class EmoteInfo(_FeedModel):
    id: Text = ""
    emote_set_id: Text = ""


class CheermoteInfo(_FeedModel):
    prefix: Text = ""
    bits: Count = 0
    tier: Count = 0


class MentionInfo(_FeedModel):
    user_id: Text = ""
    user_name: Text = ""
    user_login: Text = ""


class TextFragment(_FeedModel):
    type: Literal["text"] = "text"
    text: Text = ""


class EmoteFragment(_FeedModel):
    type: Literal["emote"] = "emote"
    text: Text = ""
    emote: Annotated[EmoteInfo, BeforeValidator(_as_mapping)] = Field(default_factory=EmoteInfo)


class CheermoteFragment(_FeedModel):
    type: Literal["cheermote"] = "cheermote"
    text: Text = ""
    cheermote: Annotated[CheermoteInfo, BeforeValidator(_as_mapping)] = Field(
        default_factory=CheermoteInfo
    )


class MentionFragment(_FeedModel):
    type: Literal["mention"] = "mention"
    text: Text = ""
    mention: Annotated[MentionInfo, BeforeValidator(_as_mapping)] = Field(
        default_factory=MentionInfo
    )


Fragment = Annotated[
    TextFragment | EmoteFragment | CheermoteFragment | MentionFragment,
    Field(discriminator="type"),
]


# ----------------------------------------------------------------------------
# Chat Message
# ----------------------------------------------------------------------------


class Badge(_FeedModel):
    set_id: Text = ""  # broadcaster, moderator, subscriber, vip, ...
    id: Text = ""
    info: Text = ""


class ReplyInfo(_FeedModel):
    parent_message_id: Text = ""
    parent_user_id: Text = ""
    parent_user_login: Text = ""
    parent_user_name: Text = ""
    parent_message_body: Text = ""
    thread_message_id: OptionalText = None
    thread_user_id: OptionalText = None
    thread_user_login: OptionalText = None
    thread_user_name: OptionalText = None


class Cheer(_FeedModel):
    bits: Count = 0


class MessageBody(_FeedModel):
    text: Text = ""
    fragments: Annotated[list[Fragment], BeforeValidator(_as_fragment_list)] = Field(
        default_factory=list
    )


class ChatMessage(_FeedModel):
    """A chat event as delivered on the subscribed channel."""

    broadcaster_user_id: Text = ""
    broadcaster_user_login: Text = ""
    broadcaster_user_name: Text = ""
    chatter_user_id: Text = ""
    chatter_user_login: Text = ""
    chatter_user_name: Text = ""
    message_id: Text = ""
    message: Annotated[MessageBody, BeforeValidator(_as_mapping)] = Field(
        default_factory=MessageBody
    )
    color: OptionalText = None
    badges: Annotated[list[Badge], BeforeValidator(_as_mapping_list)] = Field(
        default_factory=list
    )
    message_type: Text = ""
    cheer: Annotated[Cheer | None, BeforeValidator(_as_optional_mapping)] = None
    reply: Annotated[ReplyInfo | None, BeforeValidator(_as_optional_mapping)] = None
    channel_points_custom_reward_id: OptionalText = None
    source_broadcaster_user_id: OptionalText = None
    source_broadcaster_user_login: OptionalText = None
    source_broadcaster_user_name: OptionalText = None
    source_message_id: OptionalText = None
    source_badges: Annotated[list[Badge], BeforeValidator(_as_mapping_list)] = Field(
        default_factory=list
    )

    def has_badge(self, set_id: str) -> bool:
        """Return True when the chatter carries a badge from the given set."""
        return any(badge.set_id == set_id for badge in self.badges)


class ParsedChatMessage(BaseModel):
    """Simplified view of a chat message used for rendering."""

    message_id: str
    user_name: str
    display_name: str
    message: str
    role: UserRole
    color: str | None = None
    is_subscriber: bool = False
    is_moderator: bool = False
    is_broadcaster: bool = False
    is_vip: bool = False
    reply_to_user: str | None = None
    badges: list[Badge] = Field(default_factory=list)
