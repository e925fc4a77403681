"""
examples/demo_live_spectrum.py

Captures the default input device and prints a coarse text spectrum a few
times per second. Bars are the byte frequency data averaged into 12
log-spaced bands, 0..25 each.
Stop with Ctrl+C.
"""

import time

import numpy as np

from core.analyser.config import AnalyserConfig
from services.orchestrator_master import OrchestratorMaster

BANDS = 12
HEIGHT = 25


def bands(byte_freq: np.ndarray) -> list:
    # Log-spaced band edges over the bins
    edges = np.unique(np.geomspace(1, len(byte_freq), BANDS + 1).astype(int))
    out = []
    for lo, hi in zip(edges[:-1], edges[1:]):
        out.append(int(np.mean(byte_freq[lo:hi]) * HEIGHT / 255))
    return out


def main():
    orch = OrchestratorMaster(
        samplerate=44100,
        blocksize=1024,
        channels=1,
        log_every=5.0,
        config=AnalyserConfig(fft_size=2048, smoothing_time_constant=0.6, min_decibels=-90, max_decibels=-10),
    )
    buf = np.zeros(orch.analyser.frequency_bin_count, dtype=np.uint8)

    orch.start()
    try:
        while True:
            time.sleep(0.25)
            cols = bands(orch.analyser.get_byte_frequency_data(buf))
            print(" ".join(f"{c:2d}" for c in cols), f"| peak {orch.state.peak_hz:7.0f} Hz")
    except KeyboardInterrupt:
        pass
    finally:
        orch.stop()
        print("Live spectrum demo finished.")


if __name__ == "__main__":
    main()
