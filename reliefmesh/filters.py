"""Height-field enhancement stages.

Each stage is a pure ``field -> field`` function over a 2-D float array in
[0, 1]; none of them mutates its input. ``build_stages`` assembles the
active stages for a ``Settings`` record in the fixed order below:

1. anisotropic diffusion     (<= 8 passes)
2. multi-scale blend
3. bilateral filter          (<= 8 passes)
4. noise reduction (median)  (<= 6 passes)
5. smoothing                 (<= 10 passes)
6. gradient enhancement
7. Laplacian enhancement
8. unsharp masking
9. depth curve + rescale to [base_height, base_height + depth]

Stages 1-8 clamp their output to [0, 1]. Stage 9 always runs.
"""

import functools
import logging
from typing import Callable, NamedTuple

import numpy as np

from .constants import (
    DIFFUSION_MAX_PASSES, DIFFUSION_KAPPA, DIFFUSION_LAMBDA,
    MULTI_SCALE_RADII, MULTI_SCALE_WEIGHTS,
    BILATERAL_MAX_PASSES, BILATERAL_RADIUS, BILATERAL_SIGMA_SPACE,
    MEDIAN_MAX_PASSES, SMOOTHING_MAX_PASSES, SMOOTHING_RADIUS, SMOOTHING_FALLOFF,
    UNSHARP_RADIUS, UNSHARP_FALLOFF,
)
from .kernels import (
    radial_kernel, normalized_correlate, box_mean, neighbourhood, clamp_unit,
)
from .models import Settings

logger = logging.getLogger(__name__)


class Stage(NamedTuple):
    name: str
    apply: Callable[[np.ndarray], np.ndarray]


# ── 1. Anisotropic diffusion ────────────────────────────────────────

def anisotropic_diffusion(field: np.ndarray, iterations: int,
                          kappa: float = DIFFUSION_KAPPA,
                          rate: float = DIFFUSION_LAMBDA) -> np.ndarray:
    """Perona-Malik diffusion over the 4-neighbourhood.

    Conduction ``exp(-g² / kappa²)`` shrinks toward zero across strong
    gradients, so edges survive while flat regions even out.
    """
    result = field
    for _ in range(min(iterations, DIFFUSION_MAX_PASSES)):
        # edge padding makes the out-of-grid gradient exactly 0
        p = np.pad(result, 1, mode='edge')
        flux = np.zeros_like(result)
        for g in (p[:-2, 1:-1] - result, p[2:, 1:-1] - result,
                  p[1:-1, :-2] - result, p[1:-1, 2:] - result):
            flux += np.exp(-(g * g) / (kappa * kappa)) * g
        result = clamp_unit(result + rate * flux, "anisotropic diffusion")
    return result


# ── 2. Multi-scale blend ────────────────────────────────────────────

def multi_scale_blend(field: np.ndarray) -> np.ndarray:
    result = field.copy()
    for radius, weight in zip(MULTI_SCALE_RADII, MULTI_SCALE_WEIGHTS):
        result = result * (1.0 - weight) + box_mean(field, radius) * weight
    return clamp_unit(result, "multi-scale blend")


# ── 3. Bilateral filter ─────────────────────────────────────────────

def bilateral_filter(field: np.ndarray, iterations: int,
                     edge_preservation: int) -> np.ndarray:
    """5x5 bilateral filter; higher ``edge_preservation`` narrows the range kernel."""
    sigma_range = 0.1 * (11 - edge_preservation) / 10.0
    two_ss = 2.0 * BILATERAL_SIGMA_SPACE * BILATERAL_SIGMA_SPACE
    two_sr = 2.0 * sigma_range * sigma_range

    result = field
    for _ in range(min(iterations, BILATERAL_MAX_PASSES)):
        total = np.zeros_like(result)
        weight_sum = np.zeros_like(result)
        for dy, dx, values, valid in neighbourhood(result, BILATERAL_RADIUS):
            spatial = np.exp(-(dy * dy + dx * dx) / two_ss)
            diff = values - result
            w = spatial * np.exp(-(diff * diff) / two_sr) * valid
            total += values * w
            weight_sum += w
        result = clamp_unit(total / weight_sum, "bilateral filter")
    return result


# ── 4. Noise reduction ──────────────────────────────────────────────

def median_filter(field: np.ndarray, iterations: int) -> np.ndarray:
    """3x3 median over in-bounds cells (upper median for even counts)."""
    result = field
    for _ in range(min(iterations, MEDIAN_MAX_PASSES)):
        stack = []
        for _dy, _dx, values, valid in neighbourhood(result, 1):
            stack.append(np.where(valid, values, np.nan))
        stack = np.sort(np.stack(stack), axis=0)   # NaNs sort last
        counts = np.sum(~np.isnan(stack), axis=0)
        pick = (counts // 2)[None, :, :]
        result = clamp_unit(np.take_along_axis(stack, pick, axis=0)[0],
                            "noise reduction")
    return result


# ── 5. Smoothing ────────────────────────────────────────────────────

def gaussian_smoothing(field: np.ndarray, iterations: int) -> np.ndarray:
    kernel = radial_kernel(SMOOTHING_RADIUS, SMOOTHING_FALLOFF)
    result = field
    for _ in range(min(iterations, SMOOTHING_MAX_PASSES)):
        result = clamp_unit(normalized_correlate(result, kernel), "smoothing")
    return result


# ── 6. Gradient enhancement ─────────────────────────────────────────

def gradient_enhancement(field: np.ndarray, strength: int) -> np.ndarray:
    """Lift slopes by ``strength/10 * |grad|`` (central differences)."""
    grad_x = np.zeros_like(field)
    grad_y = np.zeros_like(field)
    grad_x[:, 1:-1] = (field[:, 2:] - field[:, :-2]) / 2.0
    grad_y[1:-1, :] = (field[2:, :] - field[:-2, :]) / 2.0
    magnitude = np.sqrt(grad_x * grad_x + grad_y * grad_y)
    return clamp_unit(field + magnitude * (strength / 10.0), "gradient enhancement")


# ── 7. Laplacian enhancement ────────────────────────────────────────

def laplacian_enhancement(field: np.ndarray, strength: int) -> np.ndarray:
    p = np.pad(field, 1, mode='edge')
    diff_sum = (p[:-2, 1:-1] + p[2:, 1:-1] + p[1:-1, :-2] + p[1:-1, 2:]
                - 4.0 * field)
    # in-bounds neighbour count: 4 inside, 3 on edges, 2 in corners
    counts = np.full(field.shape, 4.0)
    counts[0, :] -= 1
    counts[-1, :] -= 1
    counts[:, 0] -= 1
    counts[:, -1] -= 1
    laplacian = diff_sum / counts
    return clamp_unit(field + laplacian * (strength / 10.0), "Laplacian enhancement")


# ── 8. Unsharp masking ──────────────────────────────────────────────

def unsharp_mask(field: np.ndarray, strength: int) -> np.ndarray:
    blurred = normalized_correlate(field, radial_kernel(UNSHARP_RADIUS, UNSHARP_FALLOFF))
    amount = strength / 10.0
    return clamp_unit(field + amount * (field - blurred), "unsharp masking")


# ── 9. Depth curve and rescale ──────────────────────────────────────

def depth_rescale(field: np.ndarray, exponent: float,
                  depth: float, base_height: float) -> np.ndarray:
    """Apply the global depth curve, then map [0, 1] onto the physical height range."""
    result = clamp_unit(field, "depth enhancement")
    if exponent != 1.0:
        result = np.power(result, exponent)
    return result * depth + base_height


def build_stages(settings: Settings) -> list[Stage]:
    """Ordered list of the enhancement stages enabled by *settings*."""
    stages = []
    if settings.anisotropic_diffusion > 0:
        stages.append(Stage('anisotropic_diffusion', functools.partial(
            anisotropic_diffusion, iterations=settings.anisotropic_diffusion)))
    if settings.multi_scale_processing:
        stages.append(Stage('multi_scale', multi_scale_blend))
    if settings.bilateral_filter > 0:
        stages.append(Stage('bilateral', functools.partial(
            bilateral_filter, iterations=settings.bilateral_filter,
            edge_preservation=settings.edge_preservation)))
    if settings.noise_reduction > 0:
        stages.append(Stage('noise_reduction', functools.partial(
            median_filter, iterations=settings.noise_reduction)))
    if settings.smoothness > 0:
        stages.append(Stage('smoothing', functools.partial(
            gaussian_smoothing, iterations=settings.smoothness)))
    if settings.gradient_enhancement > 0:
        stages.append(Stage('gradient', functools.partial(
            gradient_enhancement, strength=settings.gradient_enhancement)))
    if settings.laplacian_enhancement > 0:
        stages.append(Stage('laplacian', functools.partial(
            laplacian_enhancement, strength=settings.laplacian_enhancement)))
    if settings.unsharp_masking > 0:
        stages.append(Stage('unsharp_mask', functools.partial(
            unsharp_mask, strength=settings.unsharp_masking)))
    stages.append(Stage('depth', functools.partial(
        depth_rescale, exponent=settings.depth_enhancement,
        depth=settings.depth, base_height=settings.base_height)))

    logger.debug(f"Enhancement stages: {[s.name for s in stages]}")
    return stages
