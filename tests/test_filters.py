import numpy as np
import pytest

from reliefmesh import Settings
from reliefmesh.filters import (
    anisotropic_diffusion, bilateral_filter, build_stages, depth_rescale,
    gaussian_smoothing, gradient_enhancement, laplacian_enhancement,
    median_filter, multi_scale_blend, unsharp_mask,
)


def _step_field():
    field = np.zeros((10, 10))
    field[:, 5:] = 1.0
    return field


def _peak_field(peak=0.5, background=0.25):
    field = np.full((7, 7), background)
    field[3, 3] = peak
    return field


ALL_STAGES = [
    lambda f: anisotropic_diffusion(f, 5),
    multi_scale_blend,
    lambda f: bilateral_filter(f, 6, 8),
    lambda f: median_filter(f, 5),
    lambda f: gaussian_smoothing(f, 6),
    lambda f: gradient_enhancement(f, 6),
    lambda f: laplacian_enhancement(f, 4),
    lambda f: unsharp_mask(f, 10),
]


@pytest.mark.parametrize("stage", ALL_STAGES)
def test_stages_keep_unit_range_and_do_not_mutate(stage):
    rng = np.random.default_rng(7)
    field = rng.random((12, 12))
    field[0, 0], field[-1, -1] = 0.0, 1.0
    original = field.copy()
    out = stage(field)
    assert out.shape == field.shape
    assert out.min() >= 0.0
    assert out.max() <= 1.0
    np.testing.assert_array_equal(field, original)


@pytest.mark.parametrize("stage", ALL_STAGES)
def test_stages_preserve_a_constant_field(stage):
    field = np.full((9, 9), 0.37)
    np.testing.assert_allclose(stage(field), 0.37, atol=1e-12)


def test_non_finite_values_are_clamped():
    field = np.full((5, 5), 0.5)
    field[2, 2] = np.nan
    field[0, 0] = np.inf
    out = gradient_enhancement(field, 3)
    assert np.isfinite(out).all()
    assert out.min() >= 0.0 and out.max() <= 1.0


def test_diffusion_preserves_edges_that_smoothing_blurs():
    step = _step_field()
    diffused = anisotropic_diffusion(step, 8)
    smoothed = gaussian_smoothing(step, 8)
    assert np.abs(diffused - step).max() < 1e-6
    assert np.abs(smoothed - step).max() > 0.1


def test_iteration_counts_are_capped():
    rng = np.random.default_rng(3)
    field = rng.random((8, 8))
    np.testing.assert_array_equal(anisotropic_diffusion(field, 10),
                                  anisotropic_diffusion(field, 8))
    np.testing.assert_array_equal(bilateral_filter(field, 10, 5),
                                  bilateral_filter(field, 8, 5))
    np.testing.assert_array_equal(median_filter(field, 10), median_filter(field, 6))
    np.testing.assert_array_equal(gaussian_smoothing(field, 12),
                                  gaussian_smoothing(field, 10))


def test_median_removes_isolated_spikes_including_corners():
    field = np.zeros((5, 5))
    field[2, 2] = 1.0
    field[0, 0] = 1.0
    np.testing.assert_array_equal(median_filter(field, 1), np.zeros((5, 5)))


def test_multi_scale_softens_a_peak():
    field = _peak_field()
    out = multi_scale_blend(field)
    assert 0.25 < out[3, 3] < 0.5


def test_gradient_enhancement_lifts_slopes_only():
    field = np.tile(np.linspace(0.0, 0.7, 8), (8, 1))
    out = gradient_enhancement(field, 10)
    step = 0.1
    np.testing.assert_allclose(out[:, 1:-1], field[:, 1:-1] + step)
    # border columns have no central difference along x
    np.testing.assert_allclose(out[:, 0], field[:, 0])


def test_laplacian_enhancement_flattens_a_peak():
    field = _peak_field()
    out = laplacian_enhancement(field, 10)
    assert out[3, 3] == pytest.approx(0.25)
    assert out[2, 3] == pytest.approx(0.25 + 0.25 / 4)


def test_unsharp_mask_exaggerates_a_peak():
    field = _peak_field()
    out = unsharp_mask(field, 5)
    assert out[3, 3] > 0.5
    assert out[3, 4] < 0.25


def test_depth_rescale_curve_then_scale():
    field = np.full((3, 3), 0.5)
    np.testing.assert_allclose(depth_rescale(field, 2.0, 10.0, 1.0), 3.5)
    np.testing.assert_allclose(depth_rescale(field, 1.0, 10.0, 1.0), 6.0)


def test_build_stages_default_order():
    names = [s.name for s in build_stages(Settings())]
    assert names == [
        'anisotropic_diffusion', 'multi_scale', 'bilateral', 'noise_reduction',
        'smoothing', 'gradient', 'laplacian', 'unsharp_mask', 'depth',
    ]


def test_build_stages_skips_disabled(bare_settings):
    assert [s.name for s in build_stages(bare_settings)] == ['depth']
    partial = bare_settings.replace(noise_reduction=2, unsharp_masking=1)
    assert [s.name for s in build_stages(partial)] == [
        'noise_reduction', 'unsharp_mask', 'depth']


def test_bilateral_keeps_a_step_edge():
    step = np.full((10, 10), 0.4)
    step[:, 5:] = 0.6
    kept = bilateral_filter(step, 8, 10)
    assert np.abs(kept - step).max() < 1e-6
    assert np.abs(gaussian_smoothing(step, 8) - step).max() > 0.02


def test_edge_preservation_narrows_the_range_kernel():
    step = np.full((10, 10), 0.4)
    step[:, 5:] = 0.6
    loose = bilateral_filter(step, 4, 0)
    tight = bilateral_filter(step, 4, 10)
    loose_blur = np.abs(loose - step).max()
    tight_blur = np.abs(tight - step).max()
    assert loose_blur > 0.01
    assert tight_blur < loose_blur
