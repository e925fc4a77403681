# core/analyser/spectrum.py
from __future__ import annotations

import logging

import numpy as np

from .config import AnalyserConfig, MagnitudeMode
from .history import SampleHistory
from .transform import forward_transform
from .windows import window_weights

_LOG = logging.getLogger(__name__)


class SpectrumEngine:
    """
    Smoothed magnitude spectrum over the latest fft_size samples of a history.

    - feed(count) accumulates new samples; every fft_size of them triggers one update.
    - Update: window -> forward transform -> |re| / N -> exponential smoothing.
    - The imaginary part is ignored by default (MagnitudeMode.REAL_PART), which is
      what browser analysers report; MagnitudeMode.EUCLIDEAN uses the true modulus.
    """

    def __init__(self, config: AnalyserConfig, history: SampleHistory):
        self._cfg = config
        self._history = history
        self._weights = window_weights(config.window, config.fft_size)
        self._spectrum = np.zeros(config.fft_size, dtype=np.float32)
        self._last_raw = np.zeros(config.fft_size, dtype=np.float32)
        self.samples_since_update = 0
        self.update_count = 0

    @property
    def spectrum(self) -> np.ndarray:
        """Read-only view of the smoothed magnitudes (length fft_size)."""
        view = self._spectrum.view()
        view.flags.writeable = False
        return view

    @property
    def last_raw(self) -> np.ndarray:
        """Unsmoothed magnitudes of the most recent update."""
        return self._last_raw.copy()

    def feed(self, count: int) -> bool:
        """Account for `count` newly appended samples; True if the spectrum was recomputed."""
        self.samples_since_update += count
        if self.samples_since_update < self._cfg.fft_size:
            return False
        self.samples_since_update = 0
        self._update()
        return True

    def reset(self) -> None:
        self._spectrum[:] = 0.0
        self._last_raw[:] = 0.0
        self.samples_since_update = 0

    # ---------- Internal ----------

    def _update(self) -> None:
        n = self._cfg.fft_size
        frame = self._history.snapshot(n).astype(np.float64)
        if frame.shape[0] < n:
            # History shorter than one window (buffer_size < fft_size): pad in front.
            frame = np.concatenate((np.zeros(n - frame.shape[0]), frame))

        real = frame * self._weights
        imag = np.zeros(n, dtype=np.float64)
        forward_transform(real, imag)

        if self._cfg.magnitude is MagnitudeMode.EUCLIDEAN:
            raw = np.hypot(real, imag) / n
        else:
            raw = np.abs(real) / n

        k = self._cfg.smoothing
        self._spectrum[:] = k * self._spectrum + (1.0 - k) * raw
        self._last_raw[:] = raw
        self.update_count += 1
        _LOG.debug("Spectrum update #%d (k=%.2f, peak=%.4g)", self.update_count, k, float(raw.max()))
