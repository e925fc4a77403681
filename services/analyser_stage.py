# services/analyser_stage.py
# Pass-through stage: chunks go downstream unmodified, the analyser watches them.
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Protocol

from core.analyser.analyser import Analyser
from core.analyser.errors import AnalyserClosedError
from core.analyser.pacing import CompletionMode
from core.analyser.pcm import Chunk

from services.tick_scheduler import TickScheduler

_LOG = logging.getLogger(__name__)

Subscriber = Callable[[Chunk], None]
Completion = Callable[[], None]


class Handle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """TickScheduler or any asyncio event loop."""
    def call_soon(self, fn: Callable[..., Any], *args: Any) -> Handle: ...


class AnalyserStage:
    """
    Drives an Analyser inside a chunk stream.

    - write(chunk, done) analyses the chunk, forwards it to subscribers, then
      calls done() right away or on the next scheduler tick (pacing).
    - With no subscribers the stage is a sink: chunks are analysed and dropped.
    - close() cancels deferred completions so nothing touches released buffers.
    """

    def __init__(self, analyser: Analyser, scheduler: Optional[Scheduler] = None):
        self.analyser = analyser
        self.scheduler: Scheduler = scheduler if scheduler is not None else TickScheduler()
        self._subs: List[Subscriber] = []
        self._pending: dict[int, Handle] = {}
        self._next_id = 0
        self._closed = False
        self.chunks_written = 0
        self.deferred_count = 0

    # ---------- Public API ----------

    def subscribe(self, fn: Subscriber) -> None:
        self._subs.append(fn)

    def unsubscribe(self, fn: Subscriber) -> None:
        if fn in self._subs:
            self._subs.remove(fn)

    @property
    def is_sink(self) -> bool:
        return not self._subs

    def write(self, chunk: Chunk, done: Optional[Completion] = None) -> CompletionMode:
        if self._closed:
            raise AnalyserClosedError("Stage is closed")

        forwarded, mode = self.analyser.consume(chunk)
        self.chunks_written += 1
        self._forward(forwarded)

        if mode is CompletionMode.DEFERRED:
            self.deferred_count += 1
            self._defer(done)
        elif done is not None:
            done()
        return mode

    def pending(self) -> int:
        return len(self._pending)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for handle in self._pending.values():
            handle.cancel()
        if self._pending:
            _LOG.debug("Cancelled %d deferred completion(s)", len(self._pending))
        self._pending.clear()
        self.analyser.close()

    def __enter__(self) -> "AnalyserStage":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------- Internal ----------

    def _forward(self, chunk: Chunk) -> None:
        for fn in list(self._subs):
            try:
                fn(chunk)
            except Exception as e:
                # Keep the stream flowing
                _LOG.warning("Subscriber %r failed: %s", fn, e)

    def _defer(self, done: Optional[Completion]) -> None:
        key = self._next_id
        self._next_id += 1

        def _complete() -> None:
            if self._pending.pop(key, None) is None:
                return
            if done is not None:
                done()

        self._pending[key] = self.scheduler.call_soon(_complete)
