"""Settings record, projection kinds, and mesh buffers."""

import dataclasses
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np
import trimesh

from .constants import DETAIL_PRESETS
from .errors import ConfigError


class Projection(str, Enum):
    plane = "plane"
    cylinder = "cylinder"
    cookie = "cookie"


# field -> (low, high); None means unbounded on that side
_INT_RANGES = {
    'smoothness': (0, 10),
    'surface_detail': (1, 10),
    'noise_reduction': (0, 10),
    'bilateral_filter': (0, 10),
    'laplacian_enhancement': (0, 10),
    'edge_preservation': (0, 10),
    'anisotropic_diffusion': (0, 10),
    'unsharp_masking': (0, 10),
    'gradient_enhancement': (0, 10),
    'resolution': (2, None),
}

_FLOAT_RANGES = {
    'depth': (0.0, None),
    'base_height': (0.0, None),
    'edge_sharpness': (0.5, 3.0),
    'contrast_boost': (0.5, 2.5),
    'depth_enhancement': (0.5, 2.5),
}

_BOOL_FIELDS = (
    'multi_scale_processing', 'mesh_optimization', 'adaptive_contrast',
    'invert_depth', 'adaptive_resolution', 'high_quality_normals',
    'generate_solid',
)


def _snake_case(name: str) -> str:
    out = []
    for ch in name:
        if ch.isupper():
            out.append('_')
            out.append(ch.lower())
        else:
            out.append(ch)
    return ''.join(out)


@dataclass(frozen=True)
class Settings:
    """Immutable configuration for one pipeline run.

    Integer knobs in [0, 10] double as iteration counts or strengths; a
    value of 0 disables the corresponding enhancement stage.
    """
    resolution: int = 128
    depth: float = 90.0
    base_height: float = 12.0
    projection: Projection = Projection.plane
    smoothness: int = 6
    edge_sharpness: float = 2.0
    surface_detail: int = 9
    noise_reduction: int = 5
    contrast_boost: float = 1.5
    depth_enhancement: float = 1.6
    bilateral_filter: int = 6
    laplacian_enhancement: int = 4
    multi_scale_processing: bool = True
    edge_preservation: int = 8
    mesh_optimization: bool = True
    anisotropic_diffusion: int = 5
    unsharp_masking: int = 4
    gradient_enhancement: int = 6
    adaptive_contrast: bool = True
    invert_depth: bool = False
    adaptive_resolution: bool = True
    high_quality_normals: bool = True
    generate_solid: bool = True

    def __post_init__(self):
        try:
            object.__setattr__(self, 'projection', Projection(self.projection))
        except ValueError:
            choices = ', '.join(p.value for p in Projection)
            raise ConfigError('projection',
                              f"{self.projection!r} is not one of {choices}")

        for name, (low, high) in _INT_RANGES.items():
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise ConfigError(name, f"expected an integer, got {value!r}")
            self._check_range(name, int(value), low, high)
            object.__setattr__(self, name, int(value))

        for name, (low, high) in _FLOAT_RANGES.items():
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float, np.number)):
                raise ConfigError(name, f"expected a number, got {value!r}")
            value = float(value)
            if not math.isfinite(value):
                raise ConfigError(name, f"must be finite, got {value}")
            self._check_range(name, value, low, high)
            object.__setattr__(self, name, value)

        for name in _BOOL_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, (bool, np.bool_)):
                raise ConfigError(name, f"expected a boolean, got {value!r}")
            object.__setattr__(self, name, bool(value))

    @staticmethod
    def _check_range(name, value, low, high):
        if low is not None and value < low:
            raise ConfigError(name, f"{value} is below the minimum {low}")
        if high is not None and value > high:
            raise ConfigError(name, f"{value} is above the maximum {high}")

    @classmethod
    def from_dict(cls, values: dict) -> "Settings":
        """Build settings from a dict, accepting camelCase or snake_case keys."""
        known = {f.name for f in dataclasses.fields(cls)}
        kwargs = {}
        for key, value in values.items():
            name = _snake_case(key)
            if name not in known:
                raise ConfigError(key, "unknown setting")
            kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> dict:
        data = dataclasses.asdict(self)
        data['projection'] = self.projection.value
        return data

    def replace(self, **changes) -> "Settings":
        return dataclasses.replace(self, **changes)

    def with_detail_level(self, level: str) -> "Settings":
        """Return a copy whose resolution follows a named detail preset."""
        if level not in DETAIL_PRESETS:
            choices = ', '.join(DETAIL_PRESETS)
            raise ConfigError('detail_level', f"{level!r} is not one of {choices}")
        return self.replace(resolution=DETAIL_PRESETS[level])


@dataclass
class MeshBuffers:
    """Flat vertex/index/normal buffers handed to renderers and exporters.

    ``vertices`` holds 3 floats per vertex, ``indices`` 3 vertex indices per
    triangle, ``normals`` (optional) one unit vector per vertex.
    """
    vertices: np.ndarray
    indices: np.ndarray
    normals: Optional[np.ndarray] = None

    @property
    def positions(self) -> np.ndarray:
        return self.vertices.reshape(-1, 3)

    @property
    def faces(self) -> np.ndarray:
        return self.indices.reshape(-1, 3)

    @property
    def vertex_normals(self) -> Optional[np.ndarray]:
        if self.normals is None:
            return None
        return self.normals.reshape(-1, 3)

    @property
    def vertex_count(self) -> int:
        return len(self.vertices) // 3

    @property
    def face_count(self) -> int:
        return len(self.indices) // 3

    def to_trimesh(self) -> trimesh.Trimesh:
        """Wrap the buffers in a Trimesh without merging or reordering vertices."""
        kwargs = {}
        if self.normals is not None:
            kwargs['vertex_normals'] = self.vertex_normals
        return trimesh.Trimesh(vertices=self.positions.astype(np.float64),
                               faces=self.faces.astype(np.int64),
                               process=False, **kwargs)
