"""
Shared fixtures for the analyser test suite.

Analysers built here take mono float32 chunks, so tests can feed numpy
arrays directly without going through PCM encoding.
"""

from typing import Any, Callable

import numpy as np
import pytest

from core.analyser.analyser import Analyser
from core.analyser.config import AnalyserConfig
from core.analyser.pcm import FLOAT32

MakeAnalyser = Callable[..., Analyser]


@pytest.fixture
def make_analyser() -> MakeAnalyser:
    """Factory: mono float32 analyser with pacing off unless overridden."""

    def _make(**options: Any) -> Analyser:
        options.setdefault("throttle_ms", 0)
        options.setdefault("pcm_format", FLOAT32)
        return Analyser(AnalyserConfig(**options))

    return _make


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def noise(rng: np.random.Generator) -> Callable[[int], np.ndarray]:
    """Uniform white noise in [-1, 1] as float32."""

    def _noise(n: int) -> np.ndarray:
        return rng.uniform(-1.0, 1.0, n).astype(np.float32)

    return _noise
