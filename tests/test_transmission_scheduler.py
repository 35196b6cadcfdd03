"""Tests for the fixed-rate transmission scheduler."""

from __future__ import annotations

import asyncio
import unittest
from unittest.mock import MagicMock

from c64_terminal.services.scheduler import TransmissionScheduler
from c64_terminal.services.sessions import SessionRegistry

IDLE = b"\x9f!"


def _writer(port: int) -> MagicMock:
    writer = MagicMock()
    extra = {"peername": ("127.0.0.1", port), "socket": None}
    writer.get_extra_info.side_effect = lambda key, default=None: extra.get(key, default)
    writer.is_closing.return_value = False
    return writer


class _Clock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _written(writer: MagicMock) -> bytes:
    return b"".join(call.args[0] for call in writer.write.call_args_list)


class TransmissionSchedulerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = _Clock()
        self.registry = SessionRegistry(clock=self.clock)
        self.idle_payload = MagicMock(return_value=IDLE)
        self.scheduler = TransmissionScheduler(
            self.registry,
            self.idle_payload,
            interval=0.1,
            idle_interval=120.0,
            clock=self.clock,
        )

    def _open(self, port: int) -> tuple[MagicMock, str]:
        writer = _writer(port)
        session = self.registry.add(writer)
        session.scheduler_handle = self.scheduler.start(session.address)
        return writer, session.address

    def test_drains_one_byte_per_tick_in_order(self) -> None:
        writer, address = self._open(1)
        self.registry.enqueue(address, b"abcd")

        for expected in range(1, 5):
            self.scheduler.tick()
            self.assertEqual(writer.write.call_count, expected)

        self.assertEqual(_written(writer), b"abcd")
        self.assertEqual(len(self.registry.get(address).outbound_queue), 0)

    def test_each_session_gets_one_byte_per_tick(self) -> None:
        w1, a1 = self._open(1)
        w2, a2 = self._open(2)
        self.registry.enqueue(a1, b"xy")
        self.registry.enqueue(a2, b"z")

        self.scheduler.tick()

        self.assertEqual(_written(w1), b"x")
        self.assertEqual(_written(w2), b"z")

    def test_idle_payload_injected_once_after_threshold(self) -> None:
        writer, address = self._open(1)
        session = self.registry.get(address)

        self.clock.now = 121.0
        self.scheduler.tick()

        self.idle_payload.assert_called_once()
        self.assertEqual(list(session.outbound_queue), list(IDLE))
        self.assertEqual(session.last_idle_notice, 121.0)
        writer.write.assert_not_called()

        # Drain the notice, then check again right away
        self.scheduler.tick()
        self.scheduler.tick()
        self.scheduler.tick()
        self.idle_payload.assert_called_once()
        self.assertEqual(_written(writer), IDLE)

    def test_idle_not_injected_before_threshold(self) -> None:
        self._open(1)
        self.clock.now = 120.0
        self.scheduler.tick()
        self.idle_payload.assert_not_called()

    def test_idle_check_skipped_while_content_queued(self) -> None:
        writer, address = self._open(1)
        self.registry.enqueue(address, b"m")
        self.clock.now = 500.0

        self.scheduler.tick()

        self.idle_payload.assert_not_called()
        self.assertEqual(_written(writer), b"m")

    def test_removal_stops_pending_writes(self) -> None:
        writer, address = self._open(1)
        self.registry.enqueue(address, b"abc")
        self.scheduler.tick()

        self.registry.remove(address)
        self.scheduler.tick()
        self.scheduler.tick()

        self.assertEqual(_written(writer), b"a")
        self.assertFalse(self.scheduler.is_active(address))

    def test_removal_during_tick_skips_removed_session(self) -> None:
        w1, a1 = self._open(1)
        w2, a2 = self._open(2)
        self.registry.enqueue(a1, b"1")
        self.registry.enqueue(a2, b"2")
        w1.write.side_effect = lambda data: self.registry.remove(a2)

        self.scheduler.tick()

        w2.write.assert_not_called()

    def test_write_failure_removes_session(self) -> None:
        writer, address = self._open(1)
        self.registry.enqueue(address, b"ab")
        writer.is_closing.return_value = True

        self.scheduler.tick()

        self.assertIsNone(self.registry.get(address))
        self.assertFalse(self.scheduler.is_active(address))
        writer.write.assert_not_called()

    def test_os_error_on_write_removes_session(self) -> None:
        writer, address = self._open(1)
        self.registry.enqueue(address, b"ab")
        writer.write.side_effect = ConnectionResetError()

        self.scheduler.tick()

        self.assertIsNone(self.registry.get(address))

    def test_slot_released_when_session_missing(self) -> None:
        handle = self.scheduler.start("127.0.0.1:9")

        self.scheduler.tick()

        self.assertFalse(self.scheduler.is_active("127.0.0.1:9"))
        self.assertFalse(handle.cancelled)

    def test_superseded_handle_does_not_close_new_slot(self) -> None:
        old = self.scheduler.start("127.0.0.1:5")
        new = self.scheduler.start("127.0.0.1:5")

        self.assertTrue(old.cancelled)
        old.cancel()

        self.assertTrue(self.scheduler.is_active("127.0.0.1:5"))
        new.cancel()
        self.assertFalse(self.scheduler.is_active("127.0.0.1:5"))


class TransmissionLoopTests(unittest.IsolatedAsyncioTestCase):
    async def test_loop_ticks_until_stopped(self) -> None:
        registry = SessionRegistry()
        scheduler = TransmissionScheduler(registry, lambda: b"", interval=0.01)
        writer = _writer(7)
        session = registry.add(writer)
        session.scheduler_handle = scheduler.start(session.address)
        registry.enqueue(session.address, b"ok")

        scheduler.start_loop()
        await asyncio.sleep(0.1)
        await scheduler.stop()

        self.assertEqual(_written(writer), b"ok")
        self.assertEqual(scheduler.active_count, 0)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
