# services/orchestrator_master.py
# Minimal orchestrator: capture -> analyser stage -> AnalysisState, with periodic logging.
from __future__ import annotations
import logging
import time
from typing import Optional

from core.analyser.analyser import Analyser
from core.analyser.config import AnalyserConfig
from core.analyser.pcm import PcmFormat
from core.audio_pipeline import AudioPipeline, AudioFrame
from core.state.analysis_state import AnalysisState
from services.analyser_stage import AnalyserStage
from services.tick_scheduler import TickScheduler

_LOG = logging.getLogger(__name__)


class OrchestratorMaster:
    def __init__(
        self,
        samplerate=44100,
        blocksize=1024,
        channels=2,
        device=None,
        log_every=0.25,
        config: Optional[AnalyserConfig] = None,
        pipeline: Optional[AudioPipeline] = None,
    ):
        cfg = (config or AnalyserConfig()).merged(
            pcm_format=PcmFormat(channels=channels, sample_rate=samplerate, bit_depth=32, float=True),
        )
        self.audio = pipeline or AudioPipeline(
            samplerate=samplerate, blocksize=blocksize, channels=channels, device=device,
        )
        self.scheduler = TickScheduler()
        self.stage = AnalyserStage(Analyser(cfg), scheduler=self.scheduler)
        self.state = AnalysisState()
        self._last_log = 0.0
        self._log_every = float(log_every)

    @property
    def analyser(self) -> Analyser:
        return self.stage.analyser

    def start(self):
        self.audio.subscribe(self._on_audio_frame)
        self.scheduler.start()
        self.audio.start()

    def stop(self):
        self.audio.stop()
        self.scheduler.stop()
        self.stage.close()

    # Subscriber callback
    def _on_audio_frame(self, frame: AudioFrame):
        self.stage.write(frame.block)

        a = self.analyser
        rms = frame.rms[a.config.channel]
        self.state.update_from_spectrum(rms, a.frequency_data(), a.sample_rate, a.fft_size)

        now = frame.ts
        if now - self._last_log >= self._log_every:
            self._last_log = now
            s = self.state
            _LOG.info("[AUDIO] RMS=%.3f peak=%.0f Hz (%.1f dB)", s.rms, s.peak_hz, s.peak_db)

    def run(self):
        try:
            self.start()
            while True:
                time.sleep(0.2)  # idle; the capture thread drives everything
                err = self.audio.last_error()
                if err:
                    _LOG.error(err)
                    break
        except KeyboardInterrupt:
            pass
        finally:
            self.stop()
