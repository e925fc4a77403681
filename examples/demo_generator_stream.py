"""
examples/demo_generator_stream.py

Feeds one second of white noise through an AnalyserStage in 64-sample
frames, the way a generator upstream of the analyser would, and checks on
every forwarded chunk that the buffer-filling accessors agree with the
freshly allocated ones:
- float vs. list frequency data
- byte frequency data mapped back to dB
- float vs. byte time-domain data
Deferred completions are drained with a TickScheduler between writes.
"""

import numpy as np

from core.analyser.analyser import Analyser
from core.analyser.pcm import FLOAT32, UINT8, convert_sample
from services.analyser_stage import AnalyserStage
from services.tick_scheduler import TickScheduler

ERR = 0.1


def main():
    # --------------------------------------------------------------------
    # 1) Analyser + stage
    # --------------------------------------------------------------------
    analyser = Analyser(fft_size=64, pcm_format=FLOAT32)
    scheduler = TickScheduler()
    stage = AnalyserStage(analyser, scheduler=scheduler)
    checked = {"chunks": 0}

    def on_chunk(chunk):
        n = analyser.fft_size
        float_freq = analyser.get_float_frequency_data(np.zeros(n, dtype=np.float32))
        byte_freq = analyser.get_byte_frequency_data(np.zeros(n, dtype=np.uint8))
        float_time = analyser.get_float_time_domain_data(np.zeros(n, dtype=np.float32))
        byte_time = analyser.get_byte_time_domain_data(np.zeros(n, dtype=np.uint8))
        freq = analyser.frequency_data()
        time = analyser.time_data()

        lo, hi = analyser.config.min_decibels, analyser.config.max_decibels
        assert abs(float_freq[0] - freq[0]) < ERR
        assert abs(lo + byte_freq[0] / 255.0 * (hi - lo) - freq[0]) < (hi - lo) / 255.0 + ERR
        assert abs(float_time[0] - time[0]) < ERR
        assert abs(convert_sample(int(byte_time[0]), UINT8, FLOAT32) - time[0]) < ERR
        checked["chunks"] += 1

    stage.subscribe(on_chunk)

    # --------------------------------------------------------------------
    # 2) One second of noise, 64 samples per frame
    # --------------------------------------------------------------------
    rng = np.random.default_rng()
    completed = {"sync": 0, "deferred": 0}
    try:
        for _ in range(44100 // 64):
            frame = rng.uniform(-1.0, 1.0, 64).astype(np.float32)
            mode = stage.write(frame, lambda: None)
            completed[mode.value] += 1
            scheduler.run_pending()
    finally:
        stage.close()

    print(f"→ chunks checked: {checked['chunks']}")
    print(f"→ spectral updates: {analyser.engine.update_count}")
    print(f"→ completions: {completed['sync']} sync, {completed['deferred']} deferred")


if __name__ == "__main__":
    main()
