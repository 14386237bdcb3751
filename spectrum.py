# -*- coding: utf-8 -*-
########################
# spectrum.py
########################
# Purpose:
# - Spectral frontend: Hamming window, radix-2 FFT, magnitude spectrum.
#
# Design notes:
# - Iterative Cooley-Tukey. Bit-reversal permutation first, then log2(N)
#   butterfly stages. Each stage runs vectorized across all blocks of that size.
# - Block length must be a power of two. Anything else raises FftSizeError.
#
########################
# Interfaces:
# Public exceptions:
# - class FftSizeError(ValueError)
#
# Public functions:
# - is_power_of_two(n: int) -> bool
# - hamming_window(n: int) -> np.ndarray
# - fft(values) -> np.ndarray (complex)
# - magnitude_spectrum(block) -> np.ndarray of length N/2
#
########################

from __future__ import annotations

from functools import lru_cache

import numpy as np


class FftSizeError(ValueError):
    """Raised when an FFT block length is not a positive power of two."""


def is_power_of_two(n: int) -> bool:
    value = int(n)
    return value > 0 and (value & (value - 1)) == 0


def _require_power_of_two(n: int) -> None:
    if not is_power_of_two(n):
        raise FftSizeError(f"FFT block length must be a power of two, got {n}")


@lru_cache(maxsize=16)
def hamming_window(n: int) -> np.ndarray:
    size = int(n)
    if size <= 1:
        window = np.ones(max(size, 0), dtype=np.float64)
    else:
        index = np.arange(size, dtype=np.float64)
        window = 0.54 - 0.46 * np.cos((2.0 * np.pi * index) / (size - 1))
    window.setflags(write=False)
    return window


@lru_cache(maxsize=16)
def _bit_reversal_indices(n: int) -> np.ndarray:
    levels = int(n).bit_length() - 1
    source = np.arange(n, dtype=np.int64)
    reversed_indices = np.zeros(n, dtype=np.int64)
    for _ in range(levels):
        reversed_indices = (reversed_indices << 1) | (source & 1)
        source = source >> 1
    reversed_indices.setflags(write=False)
    return reversed_indices


@lru_cache(maxsize=64)
def _twiddles(half_size: int) -> np.ndarray:
    factors = np.exp(-1j * np.pi * np.arange(half_size, dtype=np.float64) / float(half_size))
    factors.setflags(write=False)
    return factors


def fft(values) -> np.ndarray:
    data = np.asarray(values, dtype=np.complex128).reshape(-1)
    n = int(data.shape[0])
    _require_power_of_two(n)

    # The permutation is an involution, so gathering equals scattering.
    output = data[_bit_reversal_indices(n)]

    size = 2
    while size <= n:
        half_size = size // 2
        blocks = output.reshape(-1, size)
        odd = blocks[:, half_size:] * _twiddles(half_size)
        even = blocks[:, :half_size].copy()
        blocks[:, :half_size] = even + odd
        blocks[:, half_size:] = even - odd
        size *= 2

    return output


def magnitude_spectrum(block) -> np.ndarray:
    """Windowed magnitude spectrum for bins 0 .. N/2 - 1 of a power-of-two block."""
    samples = np.asarray(block, dtype=np.float64).reshape(-1)
    n = int(samples.shape[0])
    _require_power_of_two(n)

    windowed = samples * hamming_window(n)
    transformed = fft(windowed)
    return np.abs(transformed[: n // 2])
