"""Degenerate-face removal and vertex-normal synthesis."""

import logging

import numpy as np

from .constants import DEGENERATE_EPSILON

logger = logging.getLogger(__name__)


def face_cross_products(positions: np.ndarray, faces: np.ndarray) -> np.ndarray:
    """Un-normalized ``(v1 - v0) x (v2 - v0)`` for every face (length = 2 x area)."""
    v = positions.astype(np.float64)
    v0 = v[faces[:, 0]]
    return np.cross(v[faces[:, 1]] - v0, v[faces[:, 2]] - v0)


def remove_degenerate_faces(positions: np.ndarray, faces: np.ndarray,
                            epsilon: float = DEGENERATE_EPSILON) -> np.ndarray:
    """Drop faces whose cross-product magnitude is not above *epsilon*.

    Only the face array is filtered; vertices that end up unreferenced are
    left in place.
    """
    if len(faces) == 0:
        return faces
    magnitude = np.linalg.norm(face_cross_products(positions, faces), axis=1)
    keep = magnitude > epsilon
    removed = len(faces) - int(keep.sum())
    logger.info(f"Mesh optimization: removed {removed} degenerate faces, "
                f"{int(keep.sum())} remain")
    return faces[keep]


def compute_vertex_normals(positions: np.ndarray, faces: np.ndarray,
                           high_quality: bool = True) -> np.ndarray:
    """Area-weighted per-vertex normals.

    Each face adds its un-normalized cross product to its three corners;
    the sums are then scaled to unit length. Vertices with a zero sum
    (unreferenced, or only touched by degenerate faces) keep a zero normal.

    Both quality tiers run the same accumulation.
    """
    normals = np.zeros((len(positions), 3), dtype=np.float64)
    if len(faces):
        cross = face_cross_products(positions, faces)
        for corner in range(3):
            np.add.at(normals, faces[:, corner], cross)

    length = np.linalg.norm(normals, axis=1)
    nonzero = length > 0
    normals[nonzero] /= length[nonzero][:, None]

    logger.debug(f"Vertex normals ({'high' if high_quality else 'standard'} "
                 f"quality): {int(nonzero.sum())}/{len(positions)} non-zero")
    return normals
