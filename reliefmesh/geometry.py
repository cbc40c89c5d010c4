"""Grid projection, adaptive triangulation, and solid closure.

Grid vertex ``(y, x)`` has index ``y * res + x``. Output vertices are
Y-up: on the plane projection the height lands in Y and the image rows
run along +Z.

Winding convention: every top-surface triangle faces +Y on the plane
projection, every bottom-cap triangle faces -Y, and each side-wall
triangle traverses its shared border edge opposite to the cap triangle
on the other side of that edge, so the closed solid is consistently
oriented with outward normals.
"""

import logging

import numpy as np

from .constants import COOKIE_RIM_LIFT
from .models import Projection

logger = logging.getLogger(__name__)


def project_grid(heights: np.ndarray, projection: Projection,
                 rim_lift: bool = True) -> np.ndarray:
    """Embed every ``(x, y, height)`` grid sample in 3-D.

    Parameters
    ----------
    heights : np.ndarray: (res, res) scaled heights
    projection : Projection
    rim_lift : bool: apply the cookie's radial edge lift (off for the base)

    Returns
    -------
    np.ndarray: (res * res, 3) float64 positions
    """
    res = heights.shape[0]
    half = res / 2.0
    xx, yy = np.meshgrid(np.arange(res, dtype=np.float64),
                         np.arange(res, dtype=np.float64))
    h = heights.astype(np.float64)

    if projection == Projection.cylinder:
        angle = (xx / res) * np.pi * 2.0
        radius = res / 4.0
        px = np.cos(angle) * (radius + h)
        py = yy - half
        pz = np.sin(angle) * (radius + h)
    elif projection == Projection.cookie:
        dx = xx - half
        dy = yy - half
        py = h
        if rim_lift:
            dist = np.sqrt(dx * dx + dy * dy) / half
            py = h + dist * dist * COOKIE_RIM_LIFT
        px, pz = dx, dy
    else:
        px = xx - half
        py = h
        pz = yy - half

    return np.column_stack([px.ravel(), py.ravel(), pz.ravel()])


def _quad_corners(res: int, offset: int = 0):
    """Vertex indices (tl, tr, bl, br) of every grid quad, row-major."""
    iy, ix = np.meshgrid(np.arange(res - 1), np.arange(res - 1), indexing='ij')
    tl = (iy * res + ix).ravel() + offset
    tr = tl + 1
    bl = tl + res
    br = bl + 1
    return tl, tr, bl, br


def triangulate_grid(heights: np.ndarray, adaptive: bool = True) -> np.ndarray:
    """Split each grid quad into two +Y facing triangles.

    With *adaptive* on, the diagonal joining the corner pair with the
    smaller height difference is chosen, which keeps ridges and valleys
    from being cut across and reduces visible faceting on slopes.

    Returns an (2 * (res-1)², 3) int64 face array, two faces per quad.
    """
    res = heights.shape[0]
    tl, tr, bl, br = _quad_corners(res)

    # fixed split along tr-bl
    first = np.column_stack([tl, bl, tr])
    second = np.column_stack([tr, bl, br])

    if adaptive:
        h = heights.ravel()
        use_tl_br = np.abs(h[tl] - h[br]) < np.abs(h[tr] - h[bl])
        first = np.where(use_tl_br[:, None], np.column_stack([tl, bl, br]), first)
        second = np.where(use_tl_br[:, None], np.column_stack([tl, br, tr]), second)
        logger.debug(f"Adaptive split: {int(use_tl_br.sum())}/{len(tl)} quads "
                     f"use the tl-br diagonal")

    return np.stack([first, second], axis=1).reshape(-1, 3)


def bottom_cap_faces(res: int, offset: int) -> np.ndarray:
    """Faces of the flat base grid, wound to face away from the top surface."""
    tl, tr, bl, br = _quad_corners(res, offset)
    first = np.column_stack([tl, tr, bl])
    second = np.column_stack([tr, br, bl])
    return np.stack([first, second], axis=1).reshape(-1, 3)


def _wall(top_a: np.ndarray, top_b: np.ndarray, offset: int,
          reverse: bool) -> np.ndarray:
    """Two triangles per border segment ``top_a[i] -> top_b[i]``.

    The quad is (top_a, top_b, bottom_b, bottom_a); *reverse* flips the
    traversal so walls on opposite sides of the grid both face outward.
    """
    bot_a = top_a + offset
    bot_b = top_b + offset
    if reverse:
        first = np.column_stack([top_a, bot_a, top_b])
        second = np.column_stack([top_b, bot_a, bot_b])
    else:
        first = np.column_stack([top_a, top_b, bot_a])
        second = np.column_stack([top_b, bot_b, bot_a])
    return np.stack([first, second], axis=1).reshape(-1, 3)


def side_wall_faces(res: int, offset: int) -> np.ndarray:
    """Wall strips joining the four top-grid borders to the base grid.

    Returns an (8 * (res-1), 3) face array: front (row 0), back
    (last row), left (column 0), right (last column).
    """
    i = np.arange(res - 1)
    last = res - 1

    front = _wall(i, i + 1, offset, reverse=False)
    back = _wall(last * res + i, last * res + i + 1, offset, reverse=True)
    left = _wall(i * res, (i + 1) * res, offset, reverse=True)
    right = _wall(i * res + last, (i + 1) * res + last, offset, reverse=False)
    return np.vstack([front, back, left, right])
