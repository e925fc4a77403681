# core/analyser/config.py
"""
Immutable analyser configuration, resolved once per instance.

Example:
    >>> cfg = AnalyserConfig(fft_size=2048, throttle_ms=0)
    >>> cfg.frequency_bin_count
    1024
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from numbers import Integral
from typing import Any, Mapping

from .errors import ConfigurationError, FormatError
from .pcm import PcmFormat
from .transform import is_power_of_two
from .windows import WINDOWS, WindowFunction, blackman


class PacingPolicy(str, Enum):
    LITERAL = "literal"      # decrement by floor(sample_rate / throttle_ms)
    INTERVAL = "interval"    # decrement by the throttle interval in samples


class MagnitudeMode(str, Enum):
    REAL_PART = "real"       # abs(re) / N, browser-analyser compatible
    EUCLIDEAN = "euclidean"  # hypot(re, im) / N


@dataclass(frozen=True)
class AnalyserConfig:
    """
    Attributes:
        fft_size: samples per spectral update; power of two.
        buffer_size: time-domain history capacity in samples (1 s at 44.1 kHz).
        smoothing_time_constant: weight of the previous spectrum, clamped to [0, 1] at use.
        min_decibels / max_decibels: floor and scale bounds for dB and byte output.
        throttle_ms: pacing threshold; 0 disables pacing.
        channel: channel index captured from the incoming chunks.
        pcm_format: layout of incoming chunks, including the sample rate.
        window: (index, length) -> weight.
    """

    fft_size: int = 1024
    buffer_size: int = 44100
    smoothing_time_constant: float = 0.2
    min_decibels: float = -100.0
    max_decibels: float = 0.0
    throttle_ms: int = 50
    channel: int = 0
    pcm_format: PcmFormat = field(default_factory=PcmFormat)
    window: WindowFunction = blackman
    pacing: PacingPolicy = PacingPolicy.LITERAL
    magnitude: MagnitudeMode = MagnitudeMode.REAL_PART

    def __post_init__(self) -> None:
        if (
            not isinstance(self.fft_size, Integral)
            or isinstance(self.fft_size, bool)
            or not is_power_of_two(int(self.fft_size))
            or self.fft_size < 2
        ):
            raise ConfigurationError(
                f"fft_size must be an integer power of two >= 2, "
                f"got {self.fft_size!r} ({type(self.fft_size).__name__})"
            )
        object.__setattr__(self, "fft_size", int(self.fft_size))
        if self.buffer_size <= 0:
            raise ConfigurationError(f"buffer_size must be positive, got {self.buffer_size}")
        if self.throttle_ms < 0:
            raise ConfigurationError(f"throttle_ms must be non-negative, got {self.throttle_ms}")
        if not isinstance(self.pcm_format, PcmFormat):
            raise ConfigurationError(
                f"pcm_format must be a PcmFormat, got {type(self.pcm_format).__name__}"
            )
        if not 0 <= self.channel < self.pcm_format.channels:
            raise ConfigurationError(
                f"channel {self.channel} out of range for {self.pcm_format.channels}-channel format"
            )
        if not callable(self.window):
            raise ConfigurationError(f"window must be callable, got {self.window!r}")
        try:
            object.__setattr__(self, "pacing", PacingPolicy(self.pacing))
            object.__setattr__(self, "magnitude", MagnitudeMode(self.magnitude))
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    @property
    def sample_rate(self) -> int:
        return self.pcm_format.sample_rate

    @property
    def frequency_bin_count(self) -> int:
        return self.fft_size // 2

    @property
    def smoothing(self) -> float:
        """Smoothing factor k clamped to [0, 1]."""
        return min(1.0, max(float(self.smoothing_time_constant), 0.0))

    # ---------- Construction from loose options ----------

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None = None, **kwargs: Any) -> "AnalyserConfig":
        """Build from snake_case fields or the browser-style option names (fftSize, throttle, ...)."""
        return DEFAULT_CONFIG.merged(options, **kwargs)

    def merged(self, options: Mapping[str, Any] | None = None, **kwargs: Any) -> "AnalyserConfig":
        """Copy of this config with options applied."""
        opts = dict(options or {})
        opts.update(kwargs)

        own: dict[str, Any] = {}
        pcm: dict[str, Any] = {}
        names = {f.name for f in fields(self)}
        pcm_names = {f.name for f in fields(PcmFormat)}

        for key, value in opts.items():
            name = _ALIASES.get(key, key)
            if name in names:
                own[name] = value
            elif name in pcm_names:
                pcm[name] = value
            else:
                raise ConfigurationError(f"Unknown analyser option {key!r}")

        if isinstance(own.get("window"), str):
            try:
                own["window"] = WINDOWS[own["window"]]
            except KeyError:
                raise ConfigurationError(
                    f"Unknown window {own['window']!r}, valid options: {sorted(WINDOWS)}"
                ) from None

        base = own.get("pcm_format", self.pcm_format)
        if isinstance(base, Mapping):
            pcm = {**_pcm_fields(base), **pcm}
            own["pcm_format"] = base = self.pcm_format
        elif not isinstance(base, PcmFormat):
            raise ConfigurationError(
                f"format must be a PcmFormat or a mapping of its fields, got {type(base).__name__}"
            )
        if pcm:
            try:
                own["pcm_format"] = replace(base, **pcm)
            except FormatError as e:
                raise ConfigurationError(str(e)) from e
        return replace(self, **own)


_ALIASES: dict[str, str] = {
    "fftSize": "fft_size",
    "bufferSize": "buffer_size",
    "smoothingTimeConstant": "smoothing_time_constant",
    "minDecibels": "min_decibels",
    "maxDecibels": "max_decibels",
    "throttle": "throttle_ms",
    "throttleMs": "throttle_ms",
    "applyWindow": "window",
    "windowFunction": "window",
    "format": "pcm_format",
    "sampleRate": "sample_rate",
    "bitDepth": "bit_depth",
    "byteOrder": "byte_order",
}


def _pcm_fields(options: Mapping[str, Any]) -> dict[str, Any]:
    """PcmFormat fields from a loose mapping, accepting the camelCase names."""
    pcm_names = {f.name for f in fields(PcmFormat)}
    out: dict[str, Any] = {}
    for key, value in options.items():
        name = _ALIASES.get(key, key)
        if name not in pcm_names:
            raise ConfigurationError(f"Unknown format option {key!r}")
        out[name] = value
    return out


DEFAULT_CONFIG = AnalyserConfig()
