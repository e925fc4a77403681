"""
Tests for core/audio_pipeline.py, core/state/analysis_state.py and
services/orchestrator_master.py.

No audio device required: blocks are pushed through AudioPipeline._deliver()
and the sounddevice module is patched where start() is exercised.
"""

import logging

import numpy as np
import pytest

import core.audio_pipeline as audio_pipeline
from core.analyser.config import AnalyserConfig
from core.audio_pipeline import AudioFrame, AudioPipeline, block_rms
from core.state.analysis_state import AnalysisState
from services.orchestrator_master import OrchestratorMaster


class TestAudioPipeline:
    def test_start_without_sounddevice(self, monkeypatch) -> None:
        monkeypatch.setattr(audio_pipeline, "sd", None)
        with pytest.raises(RuntimeError):
            AudioPipeline().start()

    def test_invalid_channels(self) -> None:
        with pytest.raises(ValueError):
            AudioPipeline(channels=0)

    def test_deliver_fans_out(self) -> None:
        p = AudioPipeline(channels=2, history_blocks=2)
        frames = []
        p.subscribe(frames.append)
        block = np.full((16, 2), 0.5, dtype=np.float32)
        p._deliver(block)
        assert frames[0].frames == 16
        assert frames[0].rms == pytest.approx((0.5, 0.5))
        assert p.levels() == pytest.approx((0.5, 0.5))

    def test_history_bounded(self) -> None:
        p = AudioPipeline(channels=1, history_blocks=2)
        assert p.history().shape == (0, 1)
        for v in (0.1, 0.2, 0.3):
            p._deliver(np.full((4, 1), v, dtype=np.float32))
        hist = p.history()
        assert hist.shape == (8, 1)
        assert hist[0, 0] == pytest.approx(0.2)

    def test_failing_subscriber_keeps_audio_flowing(self, caplog) -> None:
        p = AudioPipeline(channels=1)
        seen = []

        def broken(frame):
            raise RuntimeError("boom")

        p.subscribe(broken)
        p.subscribe(seen.append)
        with caplog.at_level(logging.WARNING, logger="core.audio_pipeline"):
            p._deliver(np.zeros((4, 1), dtype=np.float32))
        assert len(seen) == 1
        assert "boom" in caplog.text

    def test_block_rms(self) -> None:
        block = np.array([[1.0, 0.0], [-1.0, 0.0]], dtype=np.float32)
        assert block_rms(block) == pytest.approx((1.0, 0.0))
        assert block_rms(np.zeros((0, 2), dtype=np.float32)) == (0.0, 0.0)


class TestAnalysisState:
    def test_update_keeps_history(self) -> None:
        s = AnalysisState()
        for i in range(40):
            s.update(i / 40, 100.0, -20.0)
        assert s.updates == 40
        assert len(s.rms_hist) == 32
        assert s.rms == pytest.approx(39 / 40)

    def test_peak_from_spectrum(self) -> None:
        s = AnalysisState()
        db = np.full(8, -100.0)
        db[3] = -12.0
        s.update_from_spectrum(0.1, db, sample_rate=1600, fft_size=16)
        assert s.peak_hz == pytest.approx(300.0)
        assert s.peak_db == -12.0


class TestOrchestrator:
    def test_frame_updates_state(self) -> None:
        orch = OrchestratorMaster(
            samplerate=44100, channels=2, config=AnalyserConfig(fft_size=1024, smoothing_time_constant=0.0)
        )
        n = np.arange(2048)
        tone = np.cos(2 * np.pi * 32 * n / 1024).astype(np.float32)
        block = np.column_stack((tone, np.zeros_like(tone)))
        orch._on_audio_frame(AudioFrame(ts=1.0, block=block, rms=block_rms(block)))

        assert orch.analyser.engine.update_count == 1
        assert orch.state.peak_hz == pytest.approx(32 * 44100 / 1024)
        assert orch.state.rms == pytest.approx(np.sqrt(0.5), rel=1e-3)
        orch.stage.close()
