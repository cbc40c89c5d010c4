"""Whole-mesh rotate/scale tools applied after generation."""

import logging
import math

import numpy as np

from .models import MeshBuffers
from .topology import compute_vertex_normals

logger = logging.getLogger(__name__)

DEFAULT_ROTATION_DEG = 30.0
SCALE_UP = 1.15
SCALE_DOWN = 0.85


def _rotation_matrix(axis: str, angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    if axis == 'x':
        return np.array([[1, 0, 0], [0, c, -s], [0, s, c]], dtype=np.float64)
    if axis == 'y':
        return np.array([[c, 0, s], [0, 1, 0], [-s, 0, c]], dtype=np.float64)
    if axis == 'z':
        return np.array([[c, -s, 0], [s, c, 0], [0, 0, 1]], dtype=np.float64)
    raise ValueError(f"Unknown rotation axis '{axis}' (expected x, y or z)")


def _rebuild(mesh: MeshBuffers, positions: np.ndarray) -> MeshBuffers:
    positions = positions.astype(np.float32)
    normals = None
    if mesh.normals is not None:
        normals = compute_vertex_normals(positions, mesh.faces).astype(np.float32).ravel()
    return MeshBuffers(vertices=positions.ravel(), indices=mesh.indices.copy(),
                       normals=normals)


def rotate(mesh: MeshBuffers, axis: str,
           degrees: float = DEFAULT_ROTATION_DEG) -> MeshBuffers:
    """Rotate about the origin; returns a new mesh with fresh normals."""
    rot = _rotation_matrix(axis, math.radians(degrees))
    logger.info(f"Rotating mesh {degrees:g}° about {axis.upper()}")
    return _rebuild(mesh, mesh.positions.astype(np.float64) @ rot.T)


def scale(mesh: MeshBuffers, factor: float) -> MeshBuffers:
    """Uniform scale about the origin."""
    if not math.isfinite(factor) or factor <= 0:
        raise ValueError(f"Scale factor must be positive, got {factor}")
    logger.info(f"Scaling mesh by {factor:g}")
    return _rebuild(mesh, mesh.positions.astype(np.float64) * factor)
