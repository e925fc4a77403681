# core/audio_pipeline.py
# Headless audio capture: device blocks in, raw float32 blocks out to subscribers.
from __future__ import annotations
from dataclasses import dataclass
from collections import deque
from typing import Callable, Deque, List, Optional
import logging
import time
import threading
import numpy as np

try:
    import sounddevice as sd
    from sounddevice import PortAudioError
except Exception as e:
    sd = None
    PortAudioError = Exception

_LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudioFrame:
    ts: float                # monotonic timestamp
    block: np.ndarray        # (frames, channels) float32, as delivered by the device
    rms: tuple               # per-channel RMS, 0..1 (approx, not calibrated)

    @property
    def frames(self) -> int:
        return int(self.block.shape[0])


Subscriber = Callable[[AudioFrame], None]


def block_rms(block: np.ndarray) -> tuple:
    if block.size == 0:
        return tuple(0.0 for _ in range(block.shape[1]))
    return tuple(float(v) for v in np.sqrt(np.mean(block * block, axis=0)))


class AudioPipeline:
    """
    Headless audio input.
    - Callback-driven; the sounddevice callback thread is the only producer.
    - Emits AudioFrame (raw block + per-channel RMS); analysis happens downstream.
    - No GUI dependencies.
    """

    def __init__(
        self,
        samplerate: int = 44100,
        blocksize: int = 1024,
        channels: int = 2,
        device: Optional[int | str] = None,
        history_blocks: int = 8,
    ):
        if channels < 1:
            raise ValueError("AudioPipeline needs at least one channel.")

        self.samplerate = samplerate
        self.blocksize = blocksize
        self.channels = channels
        self.device = device

        # Rolling history of raw blocks
        self._hist: Deque[np.ndarray] = deque(maxlen=history_blocks)

        self._subs: List[Subscriber] = []

        self._run_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last_err: Optional[str] = None
        self._rms: tuple = tuple(0.0 for _ in range(channels))

    # ---------- Public API ----------

    def start(self) -> None:
        if sd is None:
            raise RuntimeError("sounddevice is not available in this environment.")
        if self._thread and self._thread.is_alive():
            return
        self._run_event.set()
        self._thread = threading.Thread(target=self._run, name="AudioPipeline", daemon=True)
        self._thread.start()

    def stop(self, join: bool = True) -> None:
        self._run_event.clear()
        if join and self._thread:
            self._thread.join(timeout=2.0)

    def subscribe(self, fn: Subscriber) -> None:
        self._subs.append(fn)

    def levels(self) -> tuple:
        """Latest per-channel RMS."""
        return self._rms

    def history(self) -> np.ndarray:
        """Concatenated rolling history, shape (frames, channels)."""
        if not self._hist:
            return np.empty((0, self.channels), dtype=np.float32)
        return np.concatenate(list(self._hist), axis=0)

    def last_error(self) -> Optional[str]:
        return self._last_err

    # ---------- Internal ----------

    def _run(self) -> None:
        try:
            with sd.InputStream(
                device=self.device,
                channels=self.channels,
                samplerate=self.samplerate,
                blocksize=self.blocksize,
                dtype="float32",
                callback=self._sd_callback,
            ):
                while self._run_event.is_set():
                    time.sleep(0.01)
        except PortAudioError as e:
            self._last_err = f"Audio device error: {e}"
            _LOG.error(self._last_err)
            self._run_event.clear()
        except Exception as e:
            self._last_err = f"Audio thread failed: {e}"
            _LOG.exception("Audio thread failed")
            self._run_event.clear()

    def _sd_callback(self, indata, frames, time_info, status):
        if status:
            _LOG.debug("Input status: %s", status)
        self._deliver(np.asarray(indata, dtype=np.float32))

    def _deliver(self, block: np.ndarray) -> None:
        # Shape: (blocksize, channels)
        block = block.copy()
        self._hist.append(block)
        self._rms = block_rms(block)

        frame = AudioFrame(ts=time.monotonic(), block=block, rms=self._rms)

        for fn in self._subs:
            try:
                fn(frame)
            except Exception as e:
                # Keep audio flowing
                _LOG.warning("Audio subscriber failed: %s", e)
