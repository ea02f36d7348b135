"""
Orthonormal 2D DCT-II over square luminance grids.

out[v][u] = a(u) * a(v) * sum_y sum_x in[y][x] * cos((2x+1)u*pi/2N) * cos((2y+1)v*pi/2N)

with a(0) = sqrt(1/N) and a(k>0) = sqrt(2/N). The scaled cosine table is
built once per call and applied on both axes as C @ X @ C.T, which gives the
same coefficients as the quadruple sum (and as ``cv2.dct`` on float64 input).
"""

from __future__ import annotations

from typing import cast

import numpy as np
from numpy.typing import ArrayLike, NDArray

from errors import InvalidArgumentError


def cosine_table(n: int) -> NDArray[np.float64]:
    """
    Return the N x N scaled DCT-II basis: row k holds a(k) * cos((2i+1)k*pi/2N).
    """
    if n <= 0:
        raise InvalidArgumentError(f"DCT size must be positive, got {n}")
    k = np.arange(n, dtype=np.float64).reshape(-1, 1)
    i = np.arange(n, dtype=np.float64).reshape(1, -1)
    table = np.cos((2.0 * i + 1.0) * k * (np.pi / (2.0 * n)))
    scale = np.full((n, 1), np.sqrt(2.0 / n), dtype=np.float64)
    scale[0, 0] = np.sqrt(1.0 / n)
    return cast(NDArray[np.float64], table * scale)


def dct2d(values: ArrayLike) -> NDArray[np.float64]:
    """
    2D DCT-II of a square real matrix. NaN/Inf in the input propagate.

    Raises:
        InvalidArgumentError: if the input is not a non-empty square 2D matrix.
    """
    arr = np.asarray(values, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1] or arr.shape[0] == 0:
        raise InvalidArgumentError(
            f"DCT input must be a non-empty square matrix, got shape {arr.shape}"
        )
    table = cosine_table(arr.shape[0])
    return cast(NDArray[np.float64], table @ arr @ table.T)
