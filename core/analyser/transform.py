# core/analyser/transform.py
from __future__ import annotations

import numpy as np


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def forward_transform(real: np.ndarray, imag: np.ndarray) -> None:
    """
    In-place forward DFT of the complex signal (real, imag).

    Both arrays must have the same power-of-two length; on return they hold
    the real and imaginary parts of the spectrum (unnormalized).
    """
    if real.shape != imag.shape or real.ndim != 1:
        raise ValueError(f"real/imag shape mismatch: {real.shape} vs {imag.shape}")
    if not is_power_of_two(real.shape[0]):
        raise ValueError(f"Transform length must be a power of two, got {real.shape[0]}")

    out = np.fft.fft(real + 1j * imag)
    real[:] = out.real
    imag[:] = out.imag
