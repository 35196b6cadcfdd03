# ============================================================================
# PETSCII - Commodore 64 control codes and text helpers
# ============================================================================
"""
PETSCII control codes used when building terminal output.

Codes are kept as one-character strings so display text can be composed
with ordinary string operations and encoded to latin-1 at the end, one
byte per code. Reference: https://sta.c64.org/cbm64pet.html
"""

import re

# Primary colors
WHITE = chr(5)
RED = chr(28)
GREEN = chr(30)
BLUE = chr(31)
ORANGE = chr(129)
BLACK = chr(144)
PINK = chr(150)

# Extended colors
DARK_GREY = chr(151)
GREY = chr(152)
LIGHT_GREEN = chr(153)
LIGHT_BLUE = chr(154)
LIGHT_GREY = chr(155)
PURPLE = chr(156)
YELLOW = chr(158)
CYAN = chr(159)

# Cursor control
CURSOR_DOWN = chr(17)
CURSOR_RIGHT = chr(29)
CURSOR_UP = chr(145)
CURSOR_LEFT = chr(157)

# Display control
REVERSE_ON = chr(18)
REVERSE_OFF = chr(146)
CLEAR = chr(147)
HOME = chr(19)
DELETE = chr(20)
RETURN = chr(13)

# Graphics
UP_UNDERSCORE = chr(163)

SCREEN_WIDTH = 40

# Characters the C64 can display in its lowercase character set
ALLOWED_CHARS_PATTERN = re.compile(r"[,.\-_0-9a-zA-Z:;!?*~$&#@(){}+=<>\[\]'/\"% ]*")

_WHITESPACE = re.compile(r"\s+")


def clean_message(text: str, max_length: int = 256) -> str:
    """Reduce text to what the terminal can display.

    Runs of disallowed characters become a single space, the result is
    lowercased and cut at ``max_length`` with a trailing ellipsis.
    """
    matches = ALLOWED_CHARS_PATTERN.findall(text.strip())
    cleaned = " ".join(match for match in matches if match.strip()).strip()
    cleaned = _WHITESPACE.sub(" ", cleaned.lower())

    if len(cleaned) > max_length:
        cleaned = cleaned[:max_length] + "..."

    return cleaned


def draw_underscore(text: str, color: str, underscore_color: str) -> str:
    """Render text with a line of underscore glyphs below it."""
    return (
        color
        + text
        + RETURN
        + underscore_color
        + UP_UNDERSCORE * len(text)
        + RETURN
        + color
    )


def add_delete() -> str:
    """Move back over the current line and delete it."""
    return RETURN + CURSOR_LEFT * SCREEN_WIDTH + RETURN + DELETE * SCREEN_WIDTH


def encode(text: str) -> bytes:
    """Encode composed PETSCII text for the wire."""
    return text.encode("latin-1", errors="replace")
