# core/state/analysis_state.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Deque
from collections import deque

import numpy as np


@dataclass
class AnalysisState:
    """Lightweight snapshot cache of the latest readings; not a bus. Updated by the orchestrator."""
    rms: float = 0.0
    peak_hz: float = 0.0
    peak_db: float = -100.0
    updates: int = 0
    # Short history for meters that want a falloff
    rms_hist: Deque[float] = field(default_factory=lambda: deque(maxlen=32))
    peak_db_hist: Deque[float] = field(default_factory=lambda: deque(maxlen=32))

    def update(self, rms: float, peak_hz: float, peak_db: float) -> None:
        self.rms = rms
        self.peak_hz = peak_hz
        self.peak_db = peak_db
        self.updates += 1
        self.rms_hist.append(rms)
        self.peak_db_hist.append(peak_db)

    def update_from_spectrum(self, rms: float, freq_db: np.ndarray, sample_rate: int, fft_size: int) -> None:
        """Pick the loudest bin of a dB spectrum (bin i is i * sample_rate / fft_size Hz)."""
        if freq_db.size == 0:
            self.update(rms, 0.0, self.peak_db)
            return
        i = int(np.argmax(freq_db))
        self.update(rms, i * sample_rate / fft_size, float(freq_db[i]))
