"""Tests for the terminal session registry."""

from __future__ import annotations

import unittest
from unittest.mock import MagicMock

from c64_terminal.core import ErrorCodes, GatewayError
from c64_terminal.services.sessions import SessionRegistry, normalize_ip, peer_address


def _writer(host: str = "127.0.0.1", port: int = 50000) -> MagicMock:
    writer = MagicMock()
    extra = {"peername": (host, port), "socket": None}
    writer.get_extra_info.side_effect = lambda key, default=None: extra.get(key, default)
    writer.is_closing.return_value = False
    return writer


class _Clock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class NormalizeTests(unittest.TestCase):
    def test_ipv4_mapped_address_is_unwrapped(self) -> None:
        self.assertEqual(normalize_ip("::ffff:192.168.1.20"), "192.168.1.20")

    def test_plain_addresses_are_unchanged(self) -> None:
        self.assertEqual(normalize_ip("127.0.0.1"), "127.0.0.1")
        self.assertEqual(normalize_ip("::1"), "::1")

    def test_peer_address_uses_raw_host_and_port(self) -> None:
        address, ip = peer_address(_writer("::ffff:10.0.0.5", 6400))
        self.assertEqual(address, "::ffff:10.0.0.5:6400")
        self.assertEqual(ip, "10.0.0.5")


class SessionRegistryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = _Clock()
        self.registry = SessionRegistry(clock=self.clock)

    def test_add_registers_session_with_empty_queue(self) -> None:
        session = self.registry.add(_writer(port=1))

        self.assertEqual(session.address, "127.0.0.1:1")
        self.assertEqual(session.ip, "127.0.0.1")
        self.assertEqual(len(session.outbound_queue), 0)
        self.assertEqual(session.last_idle_notice, 1000.0)
        self.assertIs(self.registry.get("127.0.0.1:1"), session)
        self.assertEqual(self.registry.count(), 1)

    def test_add_same_address_supersedes_previous_session(self) -> None:
        first = self.registry.add(_writer(port=1))
        handle = MagicMock()
        first.scheduler_handle = handle
        first.outbound_queue.extend(b"old")

        second = self.registry.add(_writer(port=1))

        handle.cancel.assert_called_once()
        self.assertIs(self.registry.get("127.0.0.1:1"), second)
        self.assertEqual(len(second.outbound_queue), 0)
        self.assertEqual(self.registry.count(), 1)

    def test_remove_cancels_scheduler_once_and_is_idempotent(self) -> None:
        session = self.registry.add(_writer(port=2))
        handle = MagicMock()
        session.scheduler_handle = handle

        self.registry.remove(session.address)
        self.registry.remove(session.address)

        handle.cancel.assert_called_once()
        self.assertIsNone(self.registry.get(session.address))

    def test_enqueue_appends_individual_bytes(self) -> None:
        session = self.registry.add(_writer(port=3))

        self.registry.enqueue(session.address, b"\x93ab")
        self.registry.enqueue("missing:1", b"zz")

        self.assertEqual(list(session.outbound_queue), [0x93, ord("a"), ord("b")])

    def test_broadcast_appends_after_existing_content(self) -> None:
        a = self.registry.add(_writer(port=10))
        b = self.registry.add(_writer(port=11))
        c = self.registry.add(_writer(port=12))
        a.outbound_queue.extend(b"xyz")
        b.outbound_queue.extend(b"q")

        self.registry.broadcast(b"hi")

        self.assertEqual(list(a.outbound_queue), list(b"xyzhi"))
        self.assertEqual(list(b.outbound_queue), list(b"qhi"))
        self.assertEqual(list(c.outbound_queue), list(b"hi"))

    def test_disconnect_all_closes_and_swallows_errors(self) -> None:
        good = _writer(port=20)
        bad = _writer(port=21)
        bad.close.side_effect = OSError("already gone")
        s1 = self.registry.add(good)
        s2 = self.registry.add(bad)
        h1, h2 = MagicMock(), MagicMock()
        s1.scheduler_handle, s2.scheduler_handle = h1, h2

        count = self.registry.disconnect_all()

        self.assertEqual(count, 2)
        self.assertEqual(self.registry.count(), 0)
        good.close.assert_called_once()
        h1.cancel.assert_called_once()
        h2.cancel.assert_called_once()

    def test_list_reports_address_and_open_time(self) -> None:
        session = self.registry.add(_writer(port=30))

        clients = self.registry.list()

        self.assertEqual(len(clients), 1)
        self.assertEqual(clients[0].address, session.address)
        self.assertEqual(clients[0].open_time, session.open_time)

    def test_write_byte_raises_when_writer_closing(self) -> None:
        writer = _writer(port=40)
        session = self.registry.add(writer)

        session.write_byte(65)
        writer.write.assert_called_once_with(b"A")

        writer.is_closing.return_value = True
        with self.assertRaises(GatewayError) as ctx:
            session.write_byte(66)
        self.assertEqual(ctx.exception.code, ErrorCodes.SESSION_WRITE_FAILED.value)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
