"""Square-radius stamping on per-cell NumPy layers.

Pollution emission and pollution-cap mitigation both affect every tile
within a Chebyshev radius of a building's anchor.  Offsets that fall
outside the grid are clipped by the slice bounds.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


def square_window(
    x: int,
    y: int,
    radius: int,
    width: int,
    height: int,
) -> tuple[slice, slice]:
    """Return ``(rows, cols)`` slices covering the clipped square.

    Args:
        x: Centre column.
        y: Centre row.
        radius: Chebyshev radius (0 = the centre tile only).
        width: Grid columns.
        height: Grid rows.
    """
    rows = slice(max(0, y - radius), min(height, y + radius + 1))
    cols = slice(max(0, x - radius), min(width, x + radius + 1))
    return rows, cols


def add_square(
    layer: NDArray[np.float64],
    x: int,
    y: int,
    radius: int,
    amount: float,
) -> None:
    """Add ``amount`` to every tile within ``radius`` of ``(x, y)`` in-place.

    Args:
        layer: 2D array indexed ``[y, x]``.
        x: Centre column.
        y: Centre row.
        radius: Chebyshev radius.
        amount: Value added to each covered tile.
    """
    height, width = layer.shape
    rows, cols = square_window(x, y, radius, width, height)
    layer[rows, cols] += amount


def reduce_square(
    layer: NDArray[np.float64],
    x: int,
    y: int,
    radius: int,
    amount: float,
) -> None:
    """Subtract ``amount`` within ``radius`` of ``(x, y)``, flooring at zero."""
    height, width = layer.shape
    rows, cols = square_window(x, y, radius, width, height)
    layer[rows, cols] = np.maximum(0.0, layer[rows, cols] - amount)
