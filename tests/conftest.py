import base64
import io
from collections import Counter

import numpy as np
import pytest
from PIL import Image

from reliefmesh import Settings


def solid_rgba(size, color):
    """(size, size, 4) uint8 raster filled with one RGB colour."""
    arr = np.zeros((size, size, 4), dtype=np.uint8)
    arr[..., :3] = color
    arr[..., 3] = 255
    return arr


def to_data_url(arr):
    buf = io.BytesIO()
    Image.fromarray(arr).save(buf, format='PNG')
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode()


def edge_counts(faces):
    """(undirected edge -> count, directed edge -> count) for a face array."""
    undirected = Counter()
    directed = Counter()
    for a, b, c in np.asarray(faces).reshape(-1, 3).tolist():
        for u, v in ((a, b), (b, c), (c, a)):
            directed[(u, v)] += 1
            undirected[(min(u, v), max(u, v))] += 1
    return undirected, directed


@pytest.fixture
def noise_image():
    rng = np.random.default_rng(1234)
    arr = rng.integers(0, 256, size=(24, 20, 4), dtype=np.uint8)
    arr[..., 3] = 255
    return arr


@pytest.fixture
def gradient_image():
    ramp = np.linspace(0, 255, 32).astype(np.uint8)
    arr = np.zeros((32, 32, 4), dtype=np.uint8)
    arr[..., 0] = ramp[None, :]
    arr[..., 1] = ramp[:, None]
    arr[..., 2] = 90
    arr[..., 3] = 255
    return arr


@pytest.fixture
def bare_settings():
    """Every enhancement stage off; only the depth rescale remains."""
    return Settings(
        resolution=4, depth=10.0, base_height=0.0,
        anisotropic_diffusion=0, multi_scale_processing=False,
        bilateral_filter=0, noise_reduction=0, smoothness=0,
        gradient_enhancement=0, laplacian_enhancement=0, unsharp_masking=0,
        depth_enhancement=1.0, mesh_optimization=False, generate_solid=True,
    )
