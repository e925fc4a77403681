# core/analyser/pacing.py
from __future__ import annotations

import logging
import math
from enum import Enum

from .config import PacingPolicy

_LOG = logging.getLogger(__name__)


class CompletionMode(str, Enum):
    SYNC = "sync"            # signal completion within the same call
    DEFERRED = "deferred"    # yield once: signal completion on the next scheduler tick


class PacingController:
    """
    Advisory pacing: after roughly `throttle_ms` worth of audio has been processed
    synchronously, ask the caller to defer one completion to the next tick so a
    tight producer loop does not monopolize the scheduler.
    """

    def __init__(self, throttle_ms: int, sample_rate: int, policy: PacingPolicy = PacingPolicy.LITERAL):
        self.throttle_ms = throttle_ms
        self.sample_rate = sample_rate
        self.policy = policy
        self.samples_since_check = 0

        if throttle_ms > 0:
            if policy is PacingPolicy.INTERVAL:
                self._decrement = max(1, math.floor(sample_rate * throttle_ms / 1000))
            else:
                self._decrement = math.floor(sample_rate / throttle_ms)
        else:
            self._decrement = 0

    @property
    def enabled(self) -> bool:
        return self.throttle_ms > 0

    def record(self, count: int) -> None:
        self.samples_since_check += count

    def decide(self) -> CompletionMode:
        if not self.enabled:
            return CompletionMode.SYNC
        if self.samples_since_check / self.sample_rate > self.throttle_ms / 1000:
            self.samples_since_check -= self._decrement
            _LOG.debug("Pacing: deferring completion (%d samples pending)", self.samples_since_check)
            return CompletionMode.DEFERRED
        return CompletionMode.SYNC

    def reset(self) -> None:
        self.samples_since_check = 0
