# core/analyser/analyser.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple

import numpy as np

from .config import AnalyserConfig
from .errors import AnalyserClosedError
from .history import SampleHistory
from .pacing import CompletionMode, PacingController
from .pcm import Chunk, extract_channel
from .scaling import ScalingLayer
from .spectrum import SpectrumEngine

_LOG = logging.getLogger(__name__)


class ChunkStage(str, Enum):
    RECEIVED = "received"
    EXTRACTED = "extracted"
    APPENDED = "appended"
    SPECTRUM_UPDATED = "spectrum_updated"
    SPECTRUM_SKIPPED = "spectrum_skipped"
    COMPLETED_SYNC = "completed_sync"
    COMPLETED_DEFERRED = "completed_deferred"


@dataclass(frozen=True)
class ChunkReport:
    """What happened to the last chunk; stages in the order they were reached."""
    samples: int
    stages: Tuple[ChunkStage, ...]
    completion: CompletionMode

    @property
    def spectrum_updated(self) -> bool:
        return ChunkStage.SPECTRUM_UPDATED in self.stages


class Analyser:
    """
    Inline analyser: chunks pass through unmodified while time- and
    frequency-domain views of the recent signal are maintained.

    - consume(chunk) -> (chunk, CompletionMode); the caller signals completion
      now (SYNC) or on the next scheduler tick (DEFERRED).
    - Accessors are pull-based and reflect every chunk consumed so far, including
      one whose completion is still deferred.
    """

    def __init__(self, config: Optional[AnalyserConfig] = None, **options: Any):
        cfg = config or AnalyserConfig()
        if options:
            cfg = cfg.merged(options)
        self._cfg = cfg

        self._history = SampleHistory(cfg.buffer_size)
        self._engine = SpectrumEngine(cfg, self._history)
        self._scaling = ScalingLayer(cfg, self._history, self._engine)
        self._pacing = PacingController(cfg.throttle_ms, cfg.sample_rate, cfg.pacing)

        self._closed = False
        self.last_report: Optional[ChunkReport] = None

    # ---------- Properties ----------

    @property
    def config(self) -> AnalyserConfig:
        return self._cfg

    @property
    def fft_size(self) -> int:
        return self._cfg.fft_size

    @property
    def frequency_bin_count(self) -> int:
        return self._cfg.frequency_bin_count

    @property
    def sample_rate(self) -> int:
        return self._cfg.sample_rate

    @property
    def history(self) -> SampleHistory:
        return self._history

    @property
    def spectrum(self) -> np.ndarray:
        return self._engine.spectrum

    @property
    def engine(self) -> SpectrumEngine:
        return self._engine

    @property
    def pacing(self) -> PacingController:
        return self._pacing

    @property
    def closed(self) -> bool:
        return self._closed

    # ---------- Processing ----------

    def consume(self, chunk: Chunk) -> Tuple[Chunk, CompletionMode]:
        """Analyse one raw chunk and hand it back untouched with the completion mode."""
        self._ensure_open()
        samples = extract_channel(chunk, self._cfg.channel, self._cfg.pcm_format)
        mode = self._run(samples, (ChunkStage.RECEIVED, ChunkStage.EXTRACTED))
        return chunk, mode

    def process(self, samples) -> CompletionMode:
        """Same as consume() for samples that are already single-channel floats."""
        self._ensure_open()
        block = np.asarray(samples, dtype=np.float32).reshape(-1)
        return self._run(block, (ChunkStage.RECEIVED, ChunkStage.EXTRACTED))

    def _run(self, samples: np.ndarray, stages: Tuple[ChunkStage, ...]) -> CompletionMode:
        count = int(samples.shape[0])

        self._history.append(samples)
        stages += (ChunkStage.APPENDED,)

        self._pacing.record(count)
        updated = self._engine.feed(count)
        stages += (ChunkStage.SPECTRUM_UPDATED if updated else ChunkStage.SPECTRUM_SKIPPED,)

        mode = self._pacing.decide()
        stages += (
            ChunkStage.COMPLETED_DEFERRED if mode is CompletionMode.DEFERRED else ChunkStage.COMPLETED_SYNC,
        )
        self.last_report = ChunkReport(samples=count, stages=stages, completion=mode)
        return mode

    def close(self) -> None:
        """Release buffers; later consume() calls raise, accessors return empty results."""
        if self._closed:
            return
        self._closed = True
        self._history.clear()
        self._engine.reset()
        self._pacing.reset()
        _LOG.debug("Analyser closed")

    def _ensure_open(self) -> None:
        if self._closed:
            raise AnalyserClosedError("Analyser is closed")

    # ---------- Accessors ----------

    def get_float_frequency_data(self, out):
        return self._scaling.get_float_frequency_data(out)

    def get_byte_frequency_data(self, out):
        return self._scaling.get_byte_frequency_data(out)

    def get_float_time_domain_data(self, out):
        return self._scaling.get_float_time_domain_data(out)

    def get_byte_time_domain_data(self, out):
        return self._scaling.get_byte_time_domain_data(out)

    def frequency_data(self, size: Optional[int] = None) -> np.ndarray:
        return self._scaling.frequency_data(size)

    def time_data(self, size: Optional[int] = None) -> np.ndarray:
        return self._scaling.time_data(size)
