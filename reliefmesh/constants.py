"""Pipeline constants, filter caps, and resolution presets."""

# ── Luminance (ITU-R BT.709) ─────────────────────────────────────────
LUMA_WEIGHTS = (0.2126, 0.7152, 0.0722)

# ── Height-field synthesis ───────────────────────────────────────────
ADAPTIVE_CONTRAST_WINDOW = 5        # half-width → 11x11 window
ADAPTIVE_CONTRAST_PULL = 0.3
SURFACE_DETAIL_MIDPOINT = 5
SURFACE_DETAIL_GAIN = 0.7
CHANNEL_DIVERGENCE_MAX = 765.0      # |r-g| + |g-b| + |b-r| upper bound

# ── Enhancement stages ───────────────────────────────────────────────
DIFFUSION_MAX_PASSES = 8
DIFFUSION_KAPPA = 0.1
DIFFUSION_LAMBDA = 0.2

MULTI_SCALE_RADII = (1, 2, 4)
MULTI_SCALE_WEIGHTS = (0.5, 0.3, 0.2)

BILATERAL_MAX_PASSES = 8
BILATERAL_RADIUS = 2
BILATERAL_SIGMA_SPACE = 2.0

MEDIAN_MAX_PASSES = 6
SMOOTHING_MAX_PASSES = 10
SMOOTHING_RADIUS = 3
SMOOTHING_FALLOFF = 5.0             # exp(-d² / 5)

UNSHARP_RADIUS = 2
UNSHARP_FALLOFF = 3.0               # exp(-d² / 3)

# ── Geometry ─────────────────────────────────────────────────────────
COOKIE_RIM_LIFT = 35.0
DEGENERATE_EPSILON = 1e-3

# ── Resolution presets (detail level → grid size) ───────────────────
DETAIL_PRESETS = {
    'low': 64,
    'med': 128,
    'high': 192,
    'ultra': 256,
    'extreme': 320,
}

# ── Progress milestones (percent) ───────────────────────────────────
PROGRESS_SAMPLED = 2
PROGRESS_HEIGHT_FIELD = 8
PROGRESS_STAGES = {
    'anisotropic_diffusion': 15,
    'multi_scale': 22,
    'bilateral': 30,
    'noise_reduction': 38,
    'smoothing': 46,
    'gradient': 54,
    'laplacian': 60,
    'unsharp_mask': 66,
    'depth': 72,
}
PROGRESS_TOP_SURFACE = 77
PROGRESS_BOTTOM_CAP = 80
PROGRESS_SIDE_WALLS = 84
PROGRESS_SOLID = 88
PROGRESS_OPTIMIZED = 94
PROGRESS_DONE = 100
