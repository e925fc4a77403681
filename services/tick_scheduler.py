# services/tick_scheduler.py
from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import Any, Callable, Deque, Optional

_LOG = logging.getLogger(__name__)


class TickHandle:
    """Cancelable reference to a callback queued with call_soon()."""

    __slots__ = ("_fn", "_args", "_cancelled")

    def __init__(self, fn: Callable[..., Any], args: tuple):
        self._fn = fn
        self._args = args
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True
        self._fn = None
        self._args = ()

    def cancelled(self) -> bool:
        return self._cancelled

    def _run(self) -> None:
        if self._cancelled or self._fn is None:
            return
        fn, args = self._fn, self._args
        self._fn = None
        fn(*args)


class TickScheduler:
    """
    Cooperative callback queue with the same call_soon() contract as an asyncio loop.

    - run_pending() executes one tick: callbacks queued before the call, in order.
    - Callbacks queued during a tick run on the next one.
    - start() optionally drains ticks on a daemon worker thread.
    """

    def __init__(self, interval: float = 0.001):
        self._q: Deque[TickHandle] = deque()
        self._lock = threading.Lock()
        self._interval = interval
        self._running = False
        self._thread: Optional[threading.Thread] = None

    def call_soon(self, fn: Callable[..., Any], *args: Any) -> TickHandle:
        handle = TickHandle(fn, args)
        with self._lock:
            self._q.append(handle)
        return handle

    def pending(self) -> int:
        with self._lock:
            return sum(1 for h in self._q if not h.cancelled())

    def run_pending(self) -> int:
        """Run one tick; returns the number of callbacks executed."""
        with self._lock:
            batch = list(self._q)
            self._q.clear()

        ran = 0
        for handle in batch:
            if handle.cancelled():
                continue
            try:
                handle._run()
                ran += 1
            except Exception:
                _LOG.exception("Scheduled callback failed")
        return ran

    # ---------- Optional worker ----------

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._running = True
        self._thread = threading.Thread(target=self._loop, name="TickScheduler", daemon=True)
        self._thread.start()

    def stop(self, join: bool = True) -> None:
        self._running = False
        if join and self._thread:
            self._thread.join(timeout=1.0)

    def _loop(self) -> None:
        while self._running:
            if not self.run_pending():
                time.sleep(self._interval)
