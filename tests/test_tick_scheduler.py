"""Tests for services/tick_scheduler.py: cooperative callback queue."""

import logging
import threading

from services.tick_scheduler import TickScheduler


class TestTicks:
    def test_runs_in_order(self) -> None:
        s = TickScheduler()
        out = []
        s.call_soon(out.append, 1)
        s.call_soon(out.append, 2)
        assert s.pending() == 2
        assert s.run_pending() == 2
        assert out == [1, 2]
        assert s.pending() == 0

    def test_callbacks_queued_during_tick_wait(self) -> None:
        s = TickScheduler()
        out = []

        def first():
            out.append("first")
            s.call_soon(out.append, "second")

        s.call_soon(first)
        s.run_pending()
        assert out == ["first"]
        s.run_pending()
        assert out == ["first", "second"]

    def test_cancelled_handles_skipped(self) -> None:
        s = TickScheduler()
        out = []
        handle = s.call_soon(out.append, 1)
        handle.cancel()
        assert handle.cancelled()
        assert s.pending() == 0
        assert s.run_pending() == 0
        assert out == []

    def test_failing_callback_logged(self, caplog) -> None:
        s = TickScheduler()
        out = []

        def broken():
            raise ValueError("nope")

        s.call_soon(broken)
        s.call_soon(out.append, "after")
        with caplog.at_level(logging.ERROR, logger="services.tick_scheduler"):
            assert s.run_pending() == 1
        assert out == ["after"]
        assert "Scheduled callback failed" in caplog.text


class TestWorker:
    def test_worker_drains_queue(self) -> None:
        s = TickScheduler(interval=0.001)
        fired = threading.Event()
        s.start()
        try:
            s.call_soon(fired.set)
            assert fired.wait(timeout=2.0)
        finally:
            s.stop()

    def test_start_is_idempotent(self) -> None:
        s = TickScheduler()
        s.start()
        thread = s._thread
        s.start()
        assert s._thread is thread
        s.stop()
        assert not thread.is_alive()
