# core/analyser/windows.py
# Window functions: (index, length) -> weight. Blackman matches the browser analyser.
from __future__ import annotations

import math
from typing import Callable

import numpy as np

WindowFunction = Callable[[int, int], float]


def _cosine_sum(i: int, n: int, coeffs: tuple[float, ...]) -> float:
    if n <= 1:
        return 1.0
    x = 2.0 * math.pi * i / (n - 1)
    total = 0.0
    for k, a in enumerate(coeffs):
        total += (-1) ** k * a * math.cos(k * x)
    return total


def blackman(i: int, n: int) -> float:
    return _cosine_sum(i, n, (0.42, 0.5, 0.08))


def hann(i: int, n: int) -> float:
    return _cosine_sum(i, n, (0.5, 0.5))


def hamming(i: int, n: int) -> float:
    return _cosine_sum(i, n, (0.54, 0.46))


def rectangular(i: int, n: int) -> float:
    return 1.0


WINDOWS: dict[str, WindowFunction] = {
    "blackman": blackman,
    "hann": hann,
    "hamming": hamming,
    "rectangular": rectangular,
}


def window_weights(fn: WindowFunction, n: int) -> np.ndarray:
    """Evaluate fn once per index; weights are reused for every spectral update."""
    return np.array([fn(i, n) for i in range(n)], dtype=np.float64)
