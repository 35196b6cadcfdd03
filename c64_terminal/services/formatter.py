# ============================================================================
# Message Formatter - Chat events to PETSCII byte streams
# ============================================================================

from collections.abc import Callable
from datetime import datetime
from zoneinfo import ZoneInfo

from ..models import (
    ChatMessage,
    CheermoteFragment,
    EmoteFragment,
    MentionFragment,
    ParsedChatMessage,
    TextFragment,
    UserRole,
)
from . import petscii
from .petscii import (
    CYAN,
    DELETE,
    GREEN,
    GREY,
    LIGHT_BLUE,
    LIGHT_GREEN,
    LIGHT_GREY,
    PINK,
    RED,
    REVERSE_OFF,
    REVERSE_ON,
    WHITE,
    YELLOW,
)


def extract_text(message: ChatMessage) -> str:
    """Join the displayable fragments of a message.

    Emotes and cheermotes have no PETSCII rendering and are dropped. A
    message without fragments falls back to its raw text.
    """
    fragments = message.message.fragments
    if not fragments:
        return message.message.text

    parts: list[str] = []
    for fragment in fragments:
        match fragment:
            case TextFragment() | MentionFragment():
                parts.append(fragment.text)
            case EmoteFragment() | CheermoteFragment():
                continue
    return "".join(parts).strip()


class MessageFormatter:
    """Renders chat and status content for the C64 terminal."""

    def __init__(
        self,
        revision: str = "0001",
        timezone: str = "America/Los_Angeles",
        now: Callable[[ZoneInfo], datetime] = datetime.now,
    ) -> None:
        self._revision = revision
        self._timezone = ZoneInfo(timezone)
        self._now = now

    def parse(self, message: ChatMessage) -> ParsedChatMessage:
        """Reduce a chat payload to what the renderer needs."""
        is_broadcaster = message.has_badge(UserRole.BROADCASTER)
        is_moderator = message.has_badge(UserRole.MODERATOR)
        is_vip = message.has_badge(UserRole.VIP)
        is_subscriber = message.has_badge(UserRole.SUBSCRIBER)

        if is_broadcaster:
            role = UserRole.BROADCASTER
        elif is_moderator:
            role = UserRole.MODERATOR
        elif is_vip:
            role = UserRole.VIP
        elif is_subscriber:
            role = UserRole.SUBSCRIBER
        else:
            role = UserRole.REGULAR

        return ParsedChatMessage(
            message_id=message.message_id,
            user_name=message.chatter_user_login,
            display_name=message.chatter_user_name,
            message=extract_text(message),
            role=role,
            color=message.color,
            is_subscriber=is_subscriber,
            is_moderator=is_moderator,
            is_broadcaster=is_broadcaster,
            is_vip=is_vip,
            reply_to_user=message.reply.parent_user_name if message.reply else None,
            badges=message.badges,
        )

    def format_chat(self, parsed: ParsedChatMessage) -> bytes:
        """Render a chat line. Returns b"" when nothing is left to show."""
        message = petscii.clean_message(parsed.message)
        if not message:
            return b""

        if parsed.reply_to_user:
            mention = f"@{parsed.reply_to_user.lower()}"
            highlighted = f"{REVERSE_ON}{WHITE}{mention}{LIGHT_BLUE}{REVERSE_OFF}"
            message = message.replace(mention, highlighted, 1)

        user_color = WHITE
        inverter = ""

        if parsed.is_subscriber:
            inverter = REVERSE_ON

        if parsed.is_moderator:
            inverter = REVERSE_ON
            user_color = GREEN

        if parsed.is_broadcaster:
            user_color = PINK
            inverter = ""

        line = (
            f"{inverter}{user_color}{parsed.user_name.lower()}{REVERSE_OFF}: "
            f"{LIGHT_BLUE}{message}\r\r"
        )
        return petscii.encode(line)

    def welcome(self) -> bytes:
        """Render the banner shown to a newly connected terminal."""
        message = (
            f"{petscii.CLEAR}\r\r\r\r"
            f"{LIGHT_GREY}*** {WHITE}welcome to the "
            + f"{PINK}neon {CYAN}void {LIGHT_GREY}***\r\r"
        )
        message += petscii.draw_underscore(
            f"commodore 64 terminal rev:{self._revision}", LIGHT_BLUE, LIGHT_GREY
        )
        message += f"{GREEN}all systems are operational\r"

        # "down" is typed, held for a moment with spaces, then rubbed out
        message += f"{LIGHT_GREEN}cyberspace link is "
        message += f"{RED}{REVERSE_ON}down{REVERSE_OFF}"
        message += " " * 8
        message += DELETE * 8
        message += DELETE * 4
        message += f"{GREEN}{REVERSE_ON}up{REVERSE_OFF}\r\r\r"
        message += f"{CYAN}ready.\r"
        return petscii.encode(message)

    def ephemeral(self) -> bytes:
        """Render the self-erasing clock shown to idle terminals."""
        now = self._now(self._timezone)
        hour = now.hour % 12 or 12
        stamp = f"{now:%B} {now.day}, {now.year}, {hour}:{now:%M} {now:%p} (PST)"
        cleaned = petscii.clean_message(stamp, 36)

        message = f"{CYAN}{REVERSE_ON}  {cleaned}  {REVERSE_OFF}{LIGHT_BLUE}"
        message += "\r" + petscii.CURSOR_LEFT * petscii.SCREEN_WIDTH
        message += f"{GREY}{REVERSE_ON}  {cleaned}  {REVERSE_OFF}{LIGHT_BLUE}"
        message += petscii.add_delete()
        return petscii.encode(message)

    def status_notice(self, connected: bool) -> bytes:
        """Render the notice broadcast when the feed link changes state."""
        if connected:
            notice = f"\r{GREEN}{REVERSE_ON} cyberspace link restored {REVERSE_OFF}\r\r"
        else:
            notice = f"\r{RED}{REVERSE_ON} twitch link lost {REVERSE_OFF}\r\r"
        return petscii.encode(notice)

    def reconnecting_notice(self) -> bytes:
        """Render the notice broadcast before a reconnect attempt."""
        return petscii.encode(f"\r{YELLOW}{REVERSE_ON} reconnecting to twitch... {REVERSE_OFF}\r\r")
