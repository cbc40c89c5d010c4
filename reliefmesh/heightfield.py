"""Luminance → normalized height field.

Per-cell steps, in order:
1. BT.709 luminance in [0, 1]
2. Adaptive contrast: push away from the 11x11 local mean by 30%
3. Contrast boost: ``v ** (1 / boost)``
4. Surface detail: add RGB channel divergence above the detail midpoint
5. Edge sharpness: ``v ** (1 / sharpness)``
6. Invert
"""

import logging

import numpy as np

from .constants import (
    LUMA_WEIGHTS, ADAPTIVE_CONTRAST_WINDOW, ADAPTIVE_CONTRAST_PULL,
    SURFACE_DETAIL_MIDPOINT, SURFACE_DETAIL_GAIN, CHANNEL_DIVERGENCE_MAX,
)
from .kernels import box_mean, clamp_unit
from .models import Settings

logger = logging.getLogger(__name__)


def luminance(samples: np.ndarray) -> np.ndarray:
    """Perceptual brightness of an RGBA grid, normalized to [0, 1]."""
    rgb = samples[..., :3].astype(np.float64)
    wr, wg, wb = LUMA_WEIGHTS
    return (rgb[..., 0] * wr + rgb[..., 1] * wg + rgb[..., 2] * wb) / 255.0


def channel_divergence(samples: np.ndarray) -> np.ndarray:
    """``|r-g| + |g-b| + |b-r|`` scaled to [0, 1]."""
    rgb = samples[..., :3].astype(np.float64)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    return (np.abs(r - g) + np.abs(g - b) + np.abs(b - r)) / CHANNEL_DIVERGENCE_MAX


def adaptive_contrast(luma: np.ndarray) -> np.ndarray:
    local_mean = box_mean(luma, ADAPTIVE_CONTRAST_WINDOW)
    return clamp_unit(luma + (luma - local_mean) * ADAPTIVE_CONTRAST_PULL)


def synthesize_height_field(samples: np.ndarray, settings: Settings) -> np.ndarray:
    """Map an RGBA grid to a ``(res, res)`` height field in [0, 1]."""
    field = luminance(samples)

    if settings.adaptive_contrast:
        field = adaptive_contrast(field)

    if settings.contrast_boost != 1.0:
        field = clamp_unit(np.power(field, 1.0 / settings.contrast_boost))

    if settings.surface_detail > SURFACE_DETAIL_MIDPOINT:
        gain = ((settings.surface_detail - SURFACE_DETAIL_MIDPOINT)
                / SURFACE_DETAIL_MIDPOINT) * SURFACE_DETAIL_GAIN
        field = clamp_unit(field + channel_divergence(samples) * gain)

    if settings.edge_sharpness != 1.0:
        field = np.power(field, 1.0 / settings.edge_sharpness)

    if settings.invert_depth:
        field = 1.0 - field

    field = clamp_unit(field, "height field")
    logger.info(f"Height field {field.shape[1]}x{field.shape[0]}: "
                f"min={field.min():.3f} max={field.max():.3f} "
                f"mean={field.mean():.3f}")
    return field
