"""Windowed-neighbourhood helpers shared by the height-field stages.

Every window operation here treats the grid border the same way: cells
outside the grid are excluded from sums and weights, never padded or
wrapped. ``normalized_correlate`` does that by dividing by the correlated
in-bounds weight.
"""

import logging

import numpy as np
from scipy import ndimage

logger = logging.getLogger(__name__)


def radial_kernel(radius: int, falloff: float) -> np.ndarray:
    """Square kernel of ``exp(-d² / falloff)`` over ``[-radius, radius]²``."""
    offs = np.arange(-radius, radius + 1, dtype=np.float64)
    d2 = offs[:, None] ** 2 + offs[None, :] ** 2
    return np.exp(-d2 / falloff)


def normalized_correlate(field: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """Weighted mean of each cell's in-bounds neighbourhood."""
    total = ndimage.correlate(field, kernel, mode='constant', cval=0.0)
    weight = ndimage.correlate(np.ones_like(field), kernel,
                               mode='constant', cval=0.0)
    return total / weight


def box_mean(field: np.ndarray, radius: int) -> np.ndarray:
    """Unweighted mean over the in-bounds ``(2r+1)²`` window."""
    kernel = np.ones((2 * radius + 1, 2 * radius + 1), dtype=np.float64)
    return normalized_correlate(field, kernel)


def neighbourhood(field: np.ndarray, radius: int):
    """Yield ``(dy, dx, values, valid)`` for every offset in the window.

    ``values[y, x]`` is ``field[y + dy, x + dx]`` where that cell exists
    and 0 otherwise; ``valid`` marks the cells that exist.
    """
    rows, cols = field.shape
    padded = np.pad(field, radius, mode='constant', constant_values=0.0)
    inside = np.pad(np.ones(field.shape, dtype=bool), radius,
                    mode='constant', constant_values=False)
    for dy in range(-radius, radius + 1):
        for dx in range(-radius, radius + 1):
            ys = slice(radius + dy, radius + dy + rows)
            xs = slice(radius + dx, radius + dx + cols)
            yield dy, dx, padded[ys, xs], inside[ys, xs]


def clamp_unit(field: np.ndarray, stage: str = "") -> np.ndarray:
    """Clip to [0, 1], replacing non-finite values instead of propagating them."""
    if not np.isfinite(field).all():
        bad = int((~np.isfinite(field)).sum())
        logger.warning(f"{stage or 'height field'}: clamped {bad} non-finite values")
        field = np.nan_to_num(field, nan=0.0, posinf=1.0, neginf=0.0)
    return np.clip(field, 0.0, 1.0)
