"""Tests for core/analyser/pcm.py: channel extraction and sample conversion."""

import numpy as np
import pytest

from core.analyser.errors import FormatError
from core.analyser.pcm import FLOAT32, UINT8, PcmFormat, convert_sample, extract_channel

STEREO_16 = PcmFormat(channels=2, bit_depth=16)


class TestPcmFormat:
    def test_dtype(self) -> None:
        assert STEREO_16.dtype == np.dtype("<i2")
        assert UINT8.dtype == np.dtype("u1")
        assert FLOAT32.dtype == np.dtype("<f4")
        assert PcmFormat(bit_depth=32, byte_order=">").dtype == np.dtype(">i4")

    def test_frame_width(self) -> None:
        assert STEREO_16.frame_width == 4

    def test_packed_24_bit(self) -> None:
        fmt = PcmFormat(channels=2, bit_depth=24)
        assert fmt.sample_width == 3
        assert fmt.frame_width == 6
        assert fmt.full_scale == 2 ** 23
        assert fmt.dtype == np.dtype("<i4")

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"channels": 0},
            {"sample_rate": 0},
            {"bit_depth": 12},
            {"bit_depth": 16, "float": True},
            {"byte_order": "|"},
        ],
    )
    def test_invalid(self, kwargs) -> None:
        with pytest.raises(FormatError):
            PcmFormat(**kwargs)


class TestConvertSample:
    def test_float_to_uint8(self) -> None:
        assert convert_sample(0.0, FLOAT32, UINT8) == 128
        assert convert_sample(1.0, FLOAT32, UINT8) == 255
        assert convert_sample(-1.0, FLOAT32, UINT8) == 0
        assert convert_sample(2.0, FLOAT32, UINT8) == 255

    def test_uint8_to_float(self) -> None:
        assert convert_sample(128, UINT8, FLOAT32) == 0.0
        assert convert_sample(0, UINT8, FLOAT32) == -1.0
        assert convert_sample(255, UINT8, FLOAT32) == pytest.approx(127 / 128)

    def test_int16_to_float(self) -> None:
        fmt = PcmFormat(channels=1)
        assert convert_sample(16384, fmt, FLOAT32) == 0.5
        assert convert_sample(-32768, fmt, FLOAT32) == -1.0

    def test_vectorised(self) -> None:
        out = convert_sample(np.array([0.0, 0.5, -0.5]), FLOAT32, UINT8)
        assert out.dtype == np.uint8
        np.testing.assert_array_equal(out, [128, 192, 64])

    def test_scalar_types(self) -> None:
        assert isinstance(convert_sample(0.25, FLOAT32, UINT8), int)
        assert isinstance(convert_sample(12, UINT8, FLOAT32), float)

    def test_float_to_int24_and_back(self) -> None:
        fmt = PcmFormat(channels=1, bit_depth=24)
        assert convert_sample(0.5, FLOAT32, fmt) == 4194304
        assert convert_sample(1.0, FLOAT32, fmt) == 2 ** 23 - 1
        assert convert_sample(4194304, fmt, FLOAT32) == 0.5
        out = convert_sample(np.array([-1.0, 0.25]), FLOAT32, fmt)
        assert out.dtype == np.int32
        np.testing.assert_array_equal(out, [-(2 ** 23), 2 ** 21])


class TestExtractChannel:
    def _interleaved_bytes(self) -> bytes:
        left = np.array([0, 16384, -16384, 32767], dtype="<i2")
        right = np.array([-32768, 0, 8192, 0], dtype="<i2")
        return np.column_stack((left, right)).reshape(-1).tobytes()

    def test_interleaved_bytes(self) -> None:
        raw = self._interleaved_bytes()
        left = extract_channel(raw, 0, STEREO_16)
        right = extract_channel(raw, 1, STEREO_16)
        assert left.dtype == np.float32
        np.testing.assert_allclose(left, [0.0, 0.5, -0.5, 32767 / 32768])
        np.testing.assert_allclose(right, [-1.0, 0.0, 0.25, 0.0])

    def test_planar_bytes(self) -> None:
        fmt = PcmFormat(channels=2, interleaved=False)
        raw = np.array([1, 2, 3, -1, -2, -3], dtype="<i2").tobytes()
        np.testing.assert_allclose(extract_channel(raw, 1, fmt) * 32768, [-1, -2, -3])

    def test_unsigned_bytes(self) -> None:
        fmt = PcmFormat(channels=1, bit_depth=8, signed=False)
        np.testing.assert_allclose(extract_channel(bytes([128, 0, 192]), 0, fmt), [0.0, -1.0, 0.5])

    def test_two_dimensional_block(self) -> None:
        block = np.array([[0.1, 0.9], [0.2, 0.8]], dtype=np.float32)
        np.testing.assert_allclose(extract_channel(block, 1, PcmFormat(channels=2, bit_depth=32, float=True)), [0.9, 0.8])

    def test_mono_float_array_passes_through(self) -> None:
        data = np.array([0.1, -0.3], dtype=np.float64)
        out = extract_channel(data, 0, FLOAT32)
        assert out.dtype == np.float32
        np.testing.assert_allclose(out, data, rtol=1e-6)

    def test_partial_frame_rejected(self) -> None:
        with pytest.raises(FormatError):
            extract_channel(b"\x00\x01\x02", 0, STEREO_16)

    def test_channel_out_of_range(self) -> None:
        with pytest.raises(FormatError):
            extract_channel(b"\x00" * 4, 2, STEREO_16)

    @pytest.mark.parametrize("byte_order", ["<", ">"])
    def test_packed_24_bit_bytes(self, byte_order) -> None:
        fmt = PcmFormat(channels=2, bit_depth=24, byte_order=byte_order)
        left = [0, 2 ** 22, -(2 ** 22), 2 ** 23 - 1]
        right = [-(2 ** 23), 0, 2 ** 21, -1]
        order = "little" if byte_order == "<" else "big"
        raw = b"".join(
            v.to_bytes(3, order, signed=True) for pair in zip(left, right) for v in pair
        )
        assert len(raw) == 4 * fmt.frame_width
        np.testing.assert_allclose(extract_channel(raw, 0, fmt), [0.0, 0.5, -0.5, (2 ** 23 - 1) / 2 ** 23])
        np.testing.assert_allclose(extract_channel(raw, 1, fmt), [-1.0, 0.0, 0.25, -1 / 2 ** 23])

    def test_unsigned_24_bit_bytes(self) -> None:
        fmt = PcmFormat(channels=1, bit_depth=24, signed=False)
        raw = (2 ** 23).to_bytes(3, "little") + (0).to_bytes(3, "little")
        np.testing.assert_allclose(extract_channel(raw, 0, fmt), [0.0, -1.0])

    def test_packed_24_bit_partial_frame_rejected(self) -> None:
        with pytest.raises(FormatError):
            extract_channel(b"\x00" * 7, 0, PcmFormat(channels=2, bit_depth=24))
