# app.py
# Lean entrypoint: capture from the default input and log analyser readings.
import logging

from core.analyser.config import AnalyserConfig
from services.orchestrator_master import OrchestratorMaster

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    orch = OrchestratorMaster(
        samplerate=44100,
        blocksize=1024,
        channels=2,
        device=None,      # optionally set ALSA/PortAudio device index or name
        log_every=0.5,    # log readings twice per second
        config=AnalyserConfig(fft_size=2048, smoothing_time_constant=0.5),
    )
    orch.run()
