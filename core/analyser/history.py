# core/analyser/history.py
from __future__ import annotations

import numpy as np


class SampleHistory:
    """
    Fixed-capacity float32 ring of the most recent samples of one channel.
    Oldest samples are evicted first; snapshot() returns copies in chronological order.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._ring = np.zeros(capacity, dtype=np.float32)
        self._capacity = capacity
        self._write = 0     # next write position
        self._length = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return self._length

    def append(self, samples) -> None:
        block = np.asarray(samples, dtype=np.float32).reshape(-1)
        n = block.shape[0]
        if n == 0:
            return
        cap = self._capacity
        if n >= cap:
            # Only the tail survives; realign so it starts at 0.
            self._ring[:] = block[-cap:]
            self._write = 0
            self._length = cap
            return

        end = self._write + n
        if end <= cap:
            self._ring[self._write:end] = block
        else:
            first = cap - self._write
            self._ring[self._write:] = block[:first]
            self._ring[: n - first] = block[first:]
        self._write = end % cap
        self._length = min(cap, self._length + n)

    def snapshot(self, n: int) -> np.ndarray:
        """Copy of the last min(n, len) samples; fewer than n when history is short."""
        count = min(int(n), self._length)
        if count <= 0:
            return np.empty(0, dtype=np.float32)
        start = (self._write - count) % self._capacity
        if start + count <= self._capacity:
            return self._ring[start:start + count].copy()
        return np.concatenate((self._ring[start:], self._ring[: self._write]))

    def clear(self) -> None:
        self._ring[:] = 0.0
        self._write = 0
        self._length = 0
