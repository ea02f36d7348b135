"""
Pillow-backed decode / resize / grayscale helpers.

The analysis core treats these as black boxes:
- decode_and_resize(bytes) -> image or None (None means "skip this entry")
- to_grayscale(image) -> float64 luminance grid on a 0..255 scale
"""

from __future__ import annotations

import io
from typing import Optional, Union, cast

import numpy as np
from numpy.typing import NDArray
from PIL import Image, UnidentifiedImageError

from logs import get_logger

log = get_logger("pclean.imaging")

# ITU-R 601-2 luma, same weights Pillow uses for convert("L")
LUMA_R = 0.299
LUMA_G = 0.587
LUMA_B = 0.114

GrayInput = Union[Image.Image, NDArray[np.generic]]


def luminance(r: float, g: float, b: float) -> float:
    """Perceptual luminance of a single RGB pixel."""
    return LUMA_R * r + LUMA_G * g + LUMA_B * b


def decode_image(data: bytes) -> Optional[Image.Image]:
    """
    Decode encoded image bytes (PNG, JPEG, ...) into a fully loaded image.

    Returns None when the payload cannot be decoded.
    """
    try:
        im = Image.open(io.BytesIO(data))
        im.load()
    except (UnidentifiedImageError, Image.DecompressionBombError) as exc:
        log.debug(f"decode failed: {exc}")
        return None
    except (OSError, ValueError, SyntaxError) as exc:
        # truncated streams surface as OSError, some plugins raise the others
        log.debug(f"decode failed: {exc}")
        return None
    if im.mode not in ("L", "RGB"):
        im = im.convert("RGB")
    return im


def resize_linear(image: Image.Image, width: int, height: int) -> Image.Image:
    """Resize with bilinear interpolation."""
    return image.resize((width, height), Image.Resampling.BILINEAR)


def decode_and_resize(
    data: bytes, *, width: int, height: int
) -> Optional[Image.Image]:
    """Decode `data` and resize it to width x height; None when undecodable."""
    im = decode_image(data)
    if im is None:
        return None
    return resize_linear(im, width, height)


def to_grayscale(image: GrayInput) -> NDArray[np.float64]:
    """
    Collapse an image (or H x W x C grid) to a single-channel luminance grid.

    2D grids are returned as float64 without further changes.
    """
    if isinstance(image, Image.Image):
        gray = image if image.mode == "L" else image.convert("L")
        return np.asarray(gray, dtype=np.float64)

    arr = np.asarray(image, dtype=np.float64)
    if arr.ndim == 2:
        return arr
    if arr.ndim == 3 and arr.shape[2] == 1:
        return cast(NDArray[np.float64], arr[:, :, 0])
    if arr.ndim == 3 and arr.shape[2] >= 3:
        return cast(
            NDArray[np.float64],
            LUMA_R * arr[:, :, 0] + LUMA_G * arr[:, :, 1] + LUMA_B * arr[:, :, 2],
        )
    raise ValueError(f"Unsupported pixel grid shape: {arr.shape}")
