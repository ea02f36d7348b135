from __future__ import annotations

import io

import numpy as np
import pytest
from PIL import Image, ImageDraw

from errors import InvalidArgumentError
from image_phash import (
    hamming,
    phash64,
    phash_from_bytes,
    phash_hex,
    similarity_percent,
    similarity_percent_from_bytes,
)


def _noise(seed: int, size: int = 64) -> Image.Image:
    rng = np.random.default_rng(seed)
    return Image.fromarray(rng.integers(0, 256, (size, size), dtype=np.uint8), "L")


def _split_img(left: int, right: int) -> Image.Image:
    im = Image.new("L", (32, 32), color=left)
    draw = ImageDraw.Draw(im)
    # right half different shade
    draw.rectangle([16, 0, 31, 31], fill=right)
    return im


def _png(im: Image.Image) -> bytes:
    buf = io.BytesIO()
    im.save(buf, format="PNG")
    return buf.getvalue()


@pytest.mark.parametrize(
    "im",
    [
        Image.new("L", (32, 32), color=128),
        Image.new("RGB", (32, 32), color=(255, 255, 255)),
        Image.new("RGB", (40, 40), color=(10, 200, 30)),
    ],
)
def test_uniform_image_hashes_to_zero(im: Image.Image) -> None:
    assert phash64(im) == 0


def test_identical_images_hash_equal() -> None:
    a = _noise(1)
    b = a.copy()
    assert phash64(a) == phash64(b)
    assert hamming(phash64(a), phash64(b)) == 0


def test_inverted_split_images_differ() -> None:
    pa = phash64(_split_img(0, 255))
    pb = phash64(_split_img(255, 0))
    assert hamming(pa, pb) > 0


@pytest.mark.parametrize("seed", range(8))
def test_dc_bit_is_always_zero(seed: int) -> None:
    h = phash64(_noise(seed))
    assert h.bit_length() <= 64
    assert (h >> 63) & 1 == 0


@pytest.mark.parametrize("dct_size", [1, 2, 4, 8, 16])
def test_hash_width_follows_dct_size(dct_size: int) -> None:
    h = phash64(_noise(42), dct_size=dct_size)
    bits = dct_size * dct_size
    assert h.bit_length() <= bits
    assert (h >> (bits - 1)) & 1 == 0


def test_single_coefficient_hash_is_zero() -> None:
    assert phash64(_noise(3), dct_size=1) == 0


def test_hash_is_deterministic() -> None:
    im = _noise(5)
    assert len({phash64(im) for _ in range(3)}) == 1


@pytest.mark.parametrize(
    "size, dct_size",
    [(0, 8), (-1, 8), (32, 0), (32, -2), (8, 9)],
)
def test_invalid_params_raise(size: int, dct_size: int) -> None:
    with pytest.raises(InvalidArgumentError):
        phash64(_noise(0), size=size, dct_size=dct_size)


def test_hamming_properties() -> None:
    rng = np.random.default_rng(9)
    values = [int(v) for v in rng.integers(0, 2**62, 20, dtype=np.int64)]
    for a in values:
        assert hamming(a, a) == 0
        for b in values:
            d = hamming(a, b)
            assert d == hamming(b, a)
            assert 0 <= d <= 64
    assert hamming(0, (1 << 64) - 1) == 64
    assert hamming(0b1011, 0b0001) == 2


def test_similarity_percent_and_hex() -> None:
    assert similarity_percent(5, 5) == 100.0
    assert similarity_percent(0, 0xFFFF) == pytest.approx(75.0)
    assert phash_hex(0) == "0x0000000000000000"
    assert phash_hex(0xABC) == "0x0000000000000abc"


def test_from_bytes_helpers() -> None:
    data = _png(_noise(11))
    assert phash_from_bytes(data) == phash64(_noise(11))
    assert phash_from_bytes(b"definitely not an image") is None
    assert similarity_percent_from_bytes(data, data) == 100.0
    assert similarity_percent_from_bytes(data, b"junk") is None
