"""
Perceptual hashing for in-memory images.

- pHash: resize to 32x32 (bilinear) -> grayscale -> 2D DCT-II ->
  top-left 8x8 block -> median of the non-DC terms -> 64-bit int
- Bits are packed MSB-first in row-major order; the DC slot is always 0.
- Hamming distance and similarity percent between hashes.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from PIL import Image

from dct import dct2d
from errors import InvalidArgumentError
from imaging import decode_image, resize_linear, to_grayscale

DEFAULT_SIZE = 32
DEFAULT_DCT_SIZE = 8

# Flat regions produce ~1e-13 residue instead of exact zeros.
_COEFF_DECIMALS = 6


def check_hash_params(size: int, dct_size: int) -> None:
    """
    Validate hashing parameters.

    Raises:
        InvalidArgumentError: if size <= 0, dct_size <= 0 or dct_size > size.
    """
    if size <= 0:
        raise InvalidArgumentError(f"size must be positive, got {size}")
    if dct_size <= 0:
        raise InvalidArgumentError(f"dct_size must be positive, got {dct_size}")
    if dct_size > size:
        raise InvalidArgumentError(
            f"dct_size ({dct_size}) must be smaller than or equal to size ({size})"
        )


def phash64(
    image: Image.Image, *, size: int = DEFAULT_SIZE, dct_size: int = DEFAULT_DCT_SIZE
) -> int:
    """
    Compute a pHash with exactly dct_size**2 bit slots (64 for the default).

    The DC coefficient is left out of the median but still owns the highest
    bit, which is always 0.

    Coefficients are rounded to 6 decimals before the strict `c > median`
    test, so a flat image hashes to 0 instead of to float residue. The
    trade-off: a coefficient within 5e-7 of the median counts as equal to
    it and sets no bit.
    """
    check_hash_params(size, dct_size)

    gray = to_grayscale(resize_linear(image, size, size))
    coeffs = dct2d(gray)[:dct_size, :dct_size].ravel()
    coeffs = np.round(coeffs, _COEFF_DECIMALS)

    without_dc = coeffs[1:] if coeffs.size > 1 else coeffs
    med = float(np.median(without_dc))

    acc = 0
    for i, c in enumerate(coeffs):
        acc <<= 1
        if i == 0:
            continue
        if c > med:
            acc |= 1
    return acc


def hamming(a: int, b: int) -> int:
    """Hamming distance between two equal-width hashes."""
    return (a ^ b).bit_count()


def similarity_percent(a: int, b: int, *, bits: int = 64) -> float:
    """Similarity in [0, 100] derived from the Hamming distance."""
    return (bits - hamming(a, b)) / float(bits) * 100.0


def phash_hex(value: int) -> str:
    """Render a 64-bit hash as 0x-prefixed, zero-padded hex."""
    return f"0x{value & 0xFFFFFFFFFFFFFFFF:016x}"


def phash_from_bytes(
    data: bytes, *, size: int = DEFAULT_SIZE, dct_size: int = DEFAULT_DCT_SIZE
) -> Optional[int]:
    """pHash of encoded image bytes; None when the bytes cannot be decoded."""
    check_hash_params(size, dct_size)
    im = decode_image(data)
    if im is None:
        return None
    return phash64(im, size=size, dct_size=dct_size)


def similarity_percent_from_bytes(a: bytes, b: bytes) -> Optional[float]:
    """Similarity percent of two encoded images; None if either fails to decode."""
    ha = phash_from_bytes(a)
    hb = phash_from_bytes(b)
    if ha is None or hb is None:
        return None
    return similarity_percent(ha, hb)
