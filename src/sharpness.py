"""
Sharpness estimate via the variance of the discrete Laplacian response.

Kernel (cv2.Laplacian with ksize=1):

    0  1  0
    1 -4  1
    0  1  0

Only interior pixels are used, so border handling never leaks into the
result. Larger variance means a sharper image.
"""

from __future__ import annotations

import cv2  # type: ignore[import-untyped]
import numpy as np

from imaging import GrayInput, to_grayscale


def laplacian_variance(image: GrayInput) -> float:
    """
    Population variance of the Laplacian response over interior pixels.

    Returns 0.0 for grids smaller than 3x3.
    """
    gray = np.ascontiguousarray(to_grayscale(image))
    h, w = gray.shape[:2]
    if w < 3 or h < 3:
        return 0.0

    response = cv2.Laplacian(gray, cv2.CV_64F, ksize=1)  # type: ignore[no-untyped-call]
    interior = np.asarray(response, dtype=np.float64)[1:-1, 1:-1]
    return float(np.var(interior))


def is_blurry(variance: float, threshold: float) -> bool:
    """A variance strictly below `threshold` counts as blurry."""
    return variance < threshold
