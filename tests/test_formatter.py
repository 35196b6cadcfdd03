"""Tests for PETSCII helpers and the message formatter."""

from __future__ import annotations

import unittest
from datetime import datetime
from zoneinfo import ZoneInfo

from c64_terminal.models import ChatMessage, UserRole
from c64_terminal.services import petscii
from c64_terminal.services.formatter import MessageFormatter, extract_text


def _message(**overrides) -> ChatMessage:
    payload = {
        "message_id": "m-1",
        "chatter_user_login": "Neo",
        "chatter_user_name": "Neo",
        "message": {"text": "hello world", "fragments": []},
        "badges": [],
    }
    payload.update(overrides)
    return ChatMessage.model_validate(payload)


class PetsciiTests(unittest.TestCase):
    def test_control_codes(self) -> None:
        self.assertEqual(ord(petscii.CLEAR), 147)
        self.assertEqual(ord(petscii.REVERSE_ON), 18)
        self.assertEqual(ord(petscii.REVERSE_OFF), 146)
        self.assertEqual(ord(petscii.CURSOR_LEFT), 157)
        self.assertEqual(ord(petscii.DELETE), 20)

    def test_clean_message_lowercases_and_collapses(self) -> None:
        self.assertEqual(petscii.clean_message("  Hello   WORLD  "), "hello world")

    def test_clean_message_drops_unsupported_characters(self) -> None:
        self.assertEqual(petscii.clean_message("café \U0001f600 ok"), "caf ok")

    def test_clean_message_truncates_with_ellipsis(self) -> None:
        self.assertEqual(petscii.clean_message("abcdefgh", 4), "abcd...")

    def test_clean_message_empty_when_nothing_displayable(self) -> None:
        self.assertEqual(petscii.clean_message("\U0001f600\U0001f600"), "")

    def test_draw_underscore(self) -> None:
        result = petscii.draw_underscore("abc", petscii.WHITE, petscii.GREY)
        self.assertEqual(
            result,
            f"{petscii.WHITE}abc\r{petscii.GREY}{petscii.UP_UNDERSCORE * 3}\r{petscii.WHITE}",
        )

    def test_add_delete_covers_screen_width(self) -> None:
        result = petscii.add_delete()
        self.assertEqual(result.count(petscii.CURSOR_LEFT), 40)
        self.assertEqual(result.count(petscii.DELETE), 40)

    def test_encode_is_one_byte_per_code(self) -> None:
        self.assertEqual(petscii.encode(petscii.CLEAR + "a"), b"\x93a")


class ExtractTextTests(unittest.TestCase):
    def test_falls_back_to_raw_text_without_fragments(self) -> None:
        self.assertEqual(extract_text(_message()), "hello world")

    def test_keeps_text_and_mentions_drops_emotes(self) -> None:
        message = _message(
            message={
                "text": "ignored",
                "fragments": [
                    {"type": "text", "text": "hi "},
                    {"type": "mention", "text": "@trinity", "mention": {"user_name": "trinity"}},
                    {"type": "emote", "text": " Kappa", "emote": {"id": "25"}},
                    {"type": "cheermote", "text": " cheer100", "cheermote": {"bits": 100}},
                    {"type": "text", "text": " bye "},
                ],
            }
        )
        self.assertEqual(extract_text(message), "hi @trinity bye")

    def test_unknown_fragment_kind_is_read_as_text(self) -> None:
        message = _message(
            message={"text": "x", "fragments": [{"type": "sparkle", "text": "shiny"}]}
        )
        self.assertEqual(extract_text(message), "shiny")


class MessageFormatterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.moment = datetime(2024, 3, 5, 15, 7, tzinfo=ZoneInfo("America/Los_Angeles"))
        self.formatter = MessageFormatter(revision="0042", now=lambda tz: self.moment)

    def test_role_priority(self) -> None:
        cases = [
            ([], UserRole.REGULAR),
            (["subscriber"], UserRole.SUBSCRIBER),
            (["subscriber", "vip"], UserRole.VIP),
            (["vip", "moderator"], UserRole.MODERATOR),
            (["moderator", "broadcaster"], UserRole.BROADCASTER),
        ]
        for badges, role in cases:
            with self.subTest(badges=badges):
                parsed = self.formatter.parse(
                    _message(badges=[{"set_id": b, "id": "1"} for b in badges])
                )
                self.assertEqual(parsed.role, role)

    def test_parse_maps_fields(self) -> None:
        parsed = self.formatter.parse(
            _message(color="#FF0000", reply={"parent_user_name": "Trinity"})
        )
        self.assertEqual(parsed.message_id, "m-1")
        self.assertEqual(parsed.user_name, "Neo")
        self.assertEqual(parsed.message, "hello world")
        self.assertEqual(parsed.color, "#FF0000")
        self.assertEqual(parsed.reply_to_user, "Trinity")

    def test_regular_chat_line(self) -> None:
        result = self.formatter.format_chat(self.formatter.parse(_message()))
        expected = (
            f"{petscii.WHITE}neo{petscii.REVERSE_OFF}: {petscii.LIGHT_BLUE}hello world\r\r"
        )
        self.assertEqual(result, petscii.encode(expected))

    def test_subscriber_is_reversed(self) -> None:
        parsed = self.formatter.parse(_message(badges=[{"set_id": "subscriber"}]))
        result = self.formatter.format_chat(parsed)
        self.assertTrue(result.startswith(petscii.encode(petscii.REVERSE_ON + petscii.WHITE)))

    def test_moderator_is_green_and_reversed(self) -> None:
        parsed = self.formatter.parse(_message(badges=[{"set_id": "moderator"}]))
        result = self.formatter.format_chat(parsed)
        self.assertTrue(result.startswith(petscii.encode(petscii.REVERSE_ON + petscii.GREEN)))

    def test_broadcaster_is_pink_without_reverse(self) -> None:
        parsed = self.formatter.parse(
            _message(badges=[{"set_id": "broadcaster"}, {"set_id": "subscriber"}])
        )
        result = self.formatter.format_chat(parsed)
        self.assertTrue(result.startswith(petscii.encode(petscii.PINK + "neo")))

    def test_reply_mention_is_highlighted_once(self) -> None:
        parsed = self.formatter.parse(
            _message(
                message={"text": "@Trinity hi @trinity"},
                reply={"parent_user_name": "Trinity"},
            )
        )
        result = self.formatter.format_chat(parsed)
        highlighted = petscii.encode(
            f"{petscii.REVERSE_ON}{petscii.WHITE}@trinity{petscii.LIGHT_BLUE}{petscii.REVERSE_OFF}"
        )
        self.assertEqual(result.count(highlighted), 1)
        self.assertTrue(result.endswith(b" hi @trinity\r\r"))

    def test_empty_after_cleaning_renders_nothing(self) -> None:
        parsed = self.formatter.parse(_message(message={"text": "\U0001f600"}))
        self.assertEqual(self.formatter.format_chat(parsed), b"")

    def test_welcome_banner(self) -> None:
        result = self.formatter.welcome()
        self.assertTrue(result.startswith(b"\x93\r\r\r\r"))
        self.assertIn(b"commodore 64 terminal rev:0042", result)
        self.assertIn(b"all systems are operational", result)
        self.assertTrue(result.endswith(b"ready.\r"))

    def test_ephemeral_stamp_overwrites_itself(self) -> None:
        result = self.formatter.ephemeral()
        stamp = b"march 5, 2024, 3:07 pm (pst)"
        self.assertEqual(result.count(stamp), 2)
        self.assertTrue(result.startswith(petscii.encode(petscii.CYAN + petscii.REVERSE_ON)))
        self.assertTrue(result.endswith(petscii.encode(petscii.DELETE * 40)))

    def test_status_notices(self) -> None:
        self.assertIn(b" cyberspace link restored ", self.formatter.status_notice(True))
        self.assertIn(b" twitch link lost ", self.formatter.status_notice(False))
        self.assertIn(b" reconnecting to twitch... ", self.formatter.reconnecting_notice())


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
