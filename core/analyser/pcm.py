# core/analyser/pcm.py
"""
PCM format descriptor plus the two conversions the analyser needs:

- extract_channel(): one channel of an interleaved/planar chunk as float32 in [-1, 1]
- convert_sample(): scalar or vectorised sample-format conversion

Integer formats are scaled by the signed full-scale value 2**(bits-1);
unsigned formats are offset by the same amount (8-bit silence = 128).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import numpy as np

from .errors import FormatError

Chunk = Union[bytes, bytearray, memoryview, np.ndarray]

_INT_DEPTHS = (8, 16, 24, 32)
_FLOAT_DEPTHS = (32, 64)


@dataclass(frozen=True)
class PcmFormat:
    """Describes raw chunk layout; attached once, never renegotiated per chunk."""
    channels: int = 2
    sample_rate: int = 44100
    bit_depth: int = 16
    signed: bool = True
    float: bool = False
    interleaved: bool = True
    byte_order: str = "<"    # "<" little endian, ">" big endian

    def __post_init__(self) -> None:
        if self.channels < 1:
            raise FormatError(f"channels must be >= 1, got {self.channels}")
        if self.sample_rate <= 0:
            raise FormatError(f"sample_rate must be positive, got {self.sample_rate}")
        if self.byte_order not in ("<", ">"):
            raise FormatError(f"byte_order must be '<' or '>', got {self.byte_order!r}")
        depths = _FLOAT_DEPTHS if self.float else _INT_DEPTHS
        if self.bit_depth not in depths:
            kind = "float" if self.float else "integer"
            raise FormatError(f"Unsupported {kind} bit depth {self.bit_depth}; expected one of {depths}")

    @property
    def sample_width(self) -> int:
        return self.bit_depth // 8

    @property
    def frame_width(self) -> int:
        return self.sample_width * self.channels

    @property
    def dtype(self) -> np.dtype:
        """Element dtype; packed 24-bit samples use a 4-byte container."""
        width = 4 if self.bit_depth == 24 else self.sample_width
        if self.float:
            code = f"f{width}"
        else:
            code = f"{'i' if self.signed else 'u'}{width}"
        if width == 1:
            return np.dtype(code)
        return np.dtype(self.byte_order + code)

    @property
    def full_scale(self) -> float:
        return float(2 ** (self.bit_depth - 1))


FLOAT32 = PcmFormat(channels=1, bit_depth=32, float=True)
UINT8 = PcmFormat(channels=1, bit_depth=8, signed=False)


def _to_float(values: np.ndarray, fmt: PcmFormat) -> np.ndarray:
    v = values.astype(np.float64)
    if fmt.float:
        return v
    if not fmt.signed:
        v = v - fmt.full_scale
    return v / fmt.full_scale


def _from_float(values: np.ndarray, fmt: PcmFormat) -> np.ndarray:
    if fmt.float:
        return values
    full = fmt.full_scale
    out = np.clip(np.round(values * full), -full, full - 1)
    if not fmt.signed:
        out = out + full
    return out


def convert_sample(value, from_fmt: PcmFormat, to_fmt: PcmFormat):
    """
    Convert one sample (or an array of samples) between formats.
    Scalars come back as int/float, arrays as ndarray in to_fmt's numeric kind.
    """
    arr = np.asarray(value)
    converted = _from_float(_to_float(arr, from_fmt), to_fmt)

    if arr.ndim == 0:
        return float(converted) if to_fmt.float else int(converted)
    if to_fmt.float:
        return converted.astype(np.float32 if to_fmt.bit_depth == 32 else np.float64)
    return converted.astype(to_fmt.dtype.newbyteorder("="))


def extract_channel(chunk: Chunk, channel: int, fmt: PcmFormat) -> np.ndarray:
    """
    Single channel of `chunk` as normalized float32.

    Accepted inputs:
      - bytes-like: decoded with fmt (interleaved or planar)
      - 2-D ndarray: frames x channels (e.g. a sounddevice block)
      - 1-D ndarray: interleaved (or planar) samples, or mono when fmt.channels == 1
    Floating-point arrays are taken as already normalized.
    """
    if not 0 <= channel < fmt.channels:
        raise FormatError(f"channel {channel} out of range for {fmt.channels}-channel format")

    if isinstance(chunk, np.ndarray):
        data = chunk
        if data.ndim == 2:
            if channel >= data.shape[1]:
                raise FormatError(f"channel {channel} out of range for block of shape {data.shape}")
            samples = data[:, channel]
        elif data.ndim == 1:
            samples = _split_channel(data, channel, fmt)
        else:
            raise FormatError(f"Unsupported chunk dimensionality: {data.ndim}")
        if np.issubdtype(samples.dtype, np.floating):
            return samples.astype(np.float32)
        return _to_float(samples, fmt).astype(np.float32)

    buf = memoryview(chunk).cast("B")
    if len(buf) % fmt.frame_width:
        raise FormatError(
            f"Chunk of {len(buf)} bytes is not a whole number of {fmt.frame_width}-byte frames"
        )
    if fmt.bit_depth == 24:
        raw = _unpack_24(buf, fmt)
    else:
        raw = np.frombuffer(buf, dtype=fmt.dtype)
    samples = _split_channel(raw, channel, fmt)
    return _to_float(samples, fmt).astype(np.float32)


def _split_channel(data: np.ndarray, channel: int, fmt: PcmFormat) -> np.ndarray:
    if fmt.channels == 1:
        return data
    if data.size % fmt.channels:
        raise FormatError(f"{data.size} samples do not divide into {fmt.channels} channels")
    if fmt.interleaved:
        return data[channel::fmt.channels]
    return data.reshape(fmt.channels, -1)[channel]


def _unpack_24(buf: memoryview, fmt: PcmFormat) -> np.ndarray:
    # 3 bytes per sample, widened to int32
    b = np.frombuffer(buf, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
    if fmt.byte_order == "<":
        values = b[:, 0] | (b[:, 1] << 8) | (b[:, 2] << 16)
    else:
        values = (b[:, 0] << 16) | (b[:, 1] << 8) | b[:, 2]
    if fmt.signed:
        values = np.where(values >= 1 << 23, values - (1 << 24), values)
    return values
