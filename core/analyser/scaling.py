# core/analyser/scaling.py
"""
Read-only conversions from the analyser's internal state to output arrays.

Nothing here mutates history or spectrum. Every accessor is total: a None or
empty output buffer is returned untouched, short history gives short output,
and zero magnitudes come out as min_decibels (never -inf / NaN).
"""
from __future__ import annotations

from typing import Optional

import numpy as np

from .config import AnalyserConfig
from .history import SampleHistory
from .pcm import FLOAT32, UINT8, convert_sample
from .spectrum import SpectrumEngine


def decibels(magnitude: np.ndarray) -> np.ndarray:
    """20 * log10(x); zero maps to -inf and must be clamped by the caller."""
    with np.errstate(divide="ignore"):
        return 20.0 * np.log10(np.asarray(magnitude, dtype=np.float64))


def clamped_decibels(magnitude: np.ndarray, min_decibels: float) -> np.ndarray:
    return np.maximum(decibels(magnitude), min_decibels)


def byte_scale(db_values: np.ndarray, min_decibels: float, max_decibels: float) -> np.ndarray:
    """255 * (db - min) / (max - min); a zero-width range uses factor 1. No upper clamp."""
    span = max_decibels - min_decibels
    range_scale = 1.0 if span == 0 else 1.0 / span
    return 255.0 * (db_values - min_decibels) * range_scale


def _is_empty(out) -> bool:
    return out is None or len(out) == 0


def _store(out, values: np.ndarray):
    """Write values into the head of out; integer buffers get truncated, saturated values."""
    n = values.shape[0]
    if isinstance(out, np.ndarray) and np.issubdtype(out.dtype, np.integer):
        info = np.iinfo(out.dtype)
        out[:n] = np.clip(np.trunc(values), info.min, info.max)
    elif isinstance(out, np.ndarray):
        out[:n] = values
    else:
        out[:n] = values.tolist()
    return out


class ScalingLayer:
    def __init__(self, config: AnalyserConfig, history: SampleHistory, engine: SpectrumEngine):
        self._cfg = config
        self._history = history
        self._engine = engine

    # ---------- Frequency domain ----------

    def _db(self, count: int) -> np.ndarray:
        return clamped_decibels(self._engine.spectrum[:count], self._cfg.min_decibels)

    def get_float_frequency_data(self, out):
        if _is_empty(out):
            return out
        count = min(len(out), self._cfg.frequency_bin_count)
        return _store(out, self._db(count))

    def byte_frequency_values(self, count: Optional[int] = None) -> np.ndarray:
        """Unclamped, unquantized byte-scale values for the first `count` bins."""
        if count is None:
            count = self._cfg.frequency_bin_count
        count = max(0, min(count, self._cfg.frequency_bin_count))
        return byte_scale(self._db(count), self._cfg.min_decibels, self._cfg.max_decibels)

    def get_byte_frequency_data(self, out):
        if _is_empty(out):
            return out
        return _store(out, self.byte_frequency_values(len(out)))

    def frequency_data(self, size: Optional[int] = None) -> np.ndarray:
        if size is None:
            size = self._cfg.frequency_bin_count
        size = max(0, min(size, self._cfg.fft_size))
        return self._db(size)

    # ---------- Time domain ----------

    def get_float_time_domain_data(self, out):
        if _is_empty(out):
            return out
        samples = self._history.snapshot(min(len(out), self._cfg.fft_size))
        return _store(out, samples)

    def get_byte_time_domain_data(self, out):
        if _is_empty(out):
            return out
        samples = self._history.snapshot(min(len(out), self._cfg.fft_size))
        return _store(out, convert_sample(samples, FLOAT32, UINT8).astype(np.float64))

    def time_data(self, size: Optional[int] = None) -> np.ndarray:
        if size is None:
            size = self._cfg.fft_size
        return self._history.snapshot(min(size, len(self._history)))
