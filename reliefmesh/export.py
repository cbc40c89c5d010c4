"""Mesh-file export and summaries via trimesh."""

import logging
import pathlib

import numpy as np
import trimesh

from .models import MeshBuffers

logger = logging.getLogger(__name__)

# file extension -> trimesh file_type
EXPORT_FORMATS = {
    'stl': 'stl',
    'stl_ascii': 'stl_ascii',
    'obj': 'obj',
    'ply': 'ply',
    'glb': 'glb',
}


def export_mesh(mesh: MeshBuffers, output_path, file_type: str = None) -> pathlib.Path:
    """Write *mesh* to *output_path*; binary STL unless told otherwise.

    ``file_type`` defaults to the path suffix. Returns the resolved path.
    """
    path = pathlib.Path(output_path)
    file_type = (file_type or path.suffix.lstrip('.') or 'stl').lower()
    if file_type not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format '{file_type}' "
                         f"(choose from {', '.join(EXPORT_FORMATS)})")

    path.parent.mkdir(parents=True, exist_ok=True)
    tm = mesh.to_trimesh()
    tm.export(str(path), file_type=EXPORT_FORMATS[file_type])

    size_mb = path.stat().st_size / 1024 / 1024
    logger.info(f"Exported {mesh.face_count} faces to {path.name} "
                f"({file_type}, {size_mb:.2f} MB)")
    return path.resolve()


def mesh_summary(mesh) -> dict:
    """Counts, bounds, and closure flags for a MeshBuffers or Trimesh."""
    tm = mesh.to_trimesh() if isinstance(mesh, MeshBuffers) else mesh
    referenced = np.unique(tm.faces) if len(tm.faces) else np.array([], dtype=np.int64)
    bounds = tm.bounds if len(tm.vertices) else np.zeros((2, 3))
    return {
        'vertices': int(len(tm.vertices)),
        'referenced_vertices': int(len(referenced)),
        'faces': int(len(tm.faces)),
        'watertight': bool(tm.is_watertight),
        'winding_consistent': bool(tm.is_winding_consistent),
        'bounds': bounds.tolist(),
    }
