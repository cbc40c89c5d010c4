"""Image → watertight relief mesh: thin orchestrator over the stage modules."""

import logging
import time
from typing import Callable, Optional

import numpy as np

from .constants import (
    PROGRESS_SAMPLED, PROGRESS_HEIGHT_FIELD, PROGRESS_STAGES,
    PROGRESS_TOP_SURFACE, PROGRESS_BOTTOM_CAP, PROGRESS_SIDE_WALLS,
    PROGRESS_SOLID, PROGRESS_OPTIMIZED, PROGRESS_DONE,
)
from .errors import ProcessingError
from .filters import build_stages
from .geometry import project_grid, triangulate_grid, bottom_cap_faces, side_wall_faces
from .heightfield import synthesize_height_field
from .models import MeshBuffers, Settings
from .sampler import ImageSource, sample_raster
from .topology import remove_degenerate_faces, compute_vertex_normals

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, str], None]

# Exceptions that indicate a numeric failure inside a stage rather than a
# bad argument from the caller.
_STAGE_FAILURES = (FloatingPointError, ArithmeticError, ValueError,
                   IndexError, MemoryError)


def _run_stage(name: str, func, *args, **kwargs):
    try:
        return func(*args, **kwargs)
    except _STAGE_FAILURES as e:
        raise ProcessingError(name, str(e) or type(e).__name__) from e


def enhance_height_field(field: np.ndarray, settings: Settings,
                         progress: Optional[ProgressCallback] = None) -> np.ndarray:
    """Run the enabled enhancement stages, ending with the depth rescale."""
    for stage in build_stages(settings):
        t0 = time.perf_counter()
        field = _run_stage(stage.name, stage.apply, field)
        logger.debug(f"  {stage.name}: {time.perf_counter() - t0:.3f}s")
        if progress:
            progress(PROGRESS_STAGES[stage.name], f"Applied {stage.name.replace('_', ' ')}")
    return field


def generate_mesh(image: ImageSource, settings: Optional[Settings] = None,
                  progress_callback: Optional[ProgressCallback] = None) -> MeshBuffers:
    """Convert an image into relief mesh buffers.

    Parameters
    ----------
    image : path, bytes, data URL, PIL image, or (h, w[, 3|4]) array
    settings : Settings: defaults when omitted
    progress_callback : callable: optional ``(pct, msg)`` milestone hook,
        invoked synchronously on the calling thread

    Returns
    -------
    MeshBuffers: flat float32 vertices, uint32 indices, float32 normals

    Raises ``DecodeError`` for unusable images and ``ProcessingError`` if a
    stage fails; no partial mesh is ever returned.
    """
    if settings is None:
        settings = Settings()

    def _progress(pct, msg):
        if progress_callback:
            progress_callback(pct, msg)

    t_start = time.perf_counter()
    res = settings.resolution
    logger.info(f"Generating relief mesh: resolution={res}, "
                f"projection={settings.projection.value}, "
                f"solid={settings.generate_solid}")

    samples = sample_raster(image, res)
    _progress(PROGRESS_SAMPLED, "Sampled image")

    field = _run_stage('height_field', synthesize_height_field, samples, settings)
    _progress(PROGRESS_HEIGHT_FIELD, "Built height field")

    heights = enhance_height_field(field, settings, _progress)

    # ── Top surface ─────────────────────────────────────────────
    top = _run_stage('projection', project_grid, heights, settings.projection)
    faces = [_run_stage('triangulation', triangulate_grid,
                        heights, settings.adaptive_resolution)]
    _progress(PROGRESS_TOP_SURFACE, "Triangulated top surface")

    # ── Solid closure ───────────────────────────────────────────
    vertex_blocks = [top]
    if settings.generate_solid:
        offset = res * res
        bottom = _run_stage('solid_closure', project_grid,
                            np.zeros_like(heights), settings.projection,
                            rim_lift=False)
        vertex_blocks.append(bottom)
        _progress(PROGRESS_BOTTOM_CAP, "Generated base vertices")
        faces.append(bottom_cap_faces(res, offset))
        _progress(PROGRESS_SIDE_WALLS, "Generated base cap")
        faces.append(side_wall_faces(res, offset))
    _progress(PROGRESS_SOLID, "Closed solid" if settings.generate_solid
              else "Skipped solid closure")

    positions = np.vstack(vertex_blocks).astype(np.float32)
    faces = np.vstack(faces)
    if not np.isfinite(positions).all():
        raise ProcessingError('projection', "non-finite vertex position")

    # ── Mesh optimization ───────────────────────────────────────
    if settings.mesh_optimization:
        faces = _run_stage('optimization', remove_degenerate_faces, positions, faces)
    _progress(PROGRESS_OPTIMIZED, "Optimized mesh")

    normals = _run_stage('normals', compute_vertex_normals, positions, faces,
                         high_quality=settings.high_quality_normals)
    _progress(PROGRESS_DONE, "Computed normals")

    mesh = MeshBuffers(
        vertices=positions.ravel(),
        indices=faces.astype(np.uint32).ravel(),
        normals=normals.astype(np.float32).ravel(),
    )
    logger.info(f"Relief mesh: {mesh.vertex_count} verts, {mesh.face_count} faces "
                f"in {time.perf_counter() - t_start:.2f}s")
    return mesh
