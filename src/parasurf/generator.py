"""Tessellation of parametric surfaces into packed triangle buffers.

A surface is sampled on a ``u_segments x v_segments`` grid of cells; cell
``(u, v)`` lives at index ``u * v_segments + v`` in every per-cell array.
Generation runs three passes, each finished before the next one starts:

1. position sampling: ``position(uv(u, v))`` for every cell
2. triangulation: two triangles per grid quad, face normals, per-vertex uvs
3. normals: flat (face normal per triangle) or smooth (per-cell average of
   the face normals of every corner referencing the cell)

The quad with lower-left cell ``(u, v)`` has corners
``[(u, v), (u+1, v), (u+1, v+1), (u, v+1)]`` with indices taken modulo the
grid size, and is split along the fixed diagonal into corners ``(0, 1, 2)``
and ``(0, 2, 3)``.  A closed axis of ``n`` cells has ``n`` quads, an open one
``n - 1``.

Copyright (c) 2026 parasurf contributors
MIT License
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import NamedTuple, Tuple

import numpy as np

from parasurf.buffer import Layout, VertexBuffer, pack
from parasurf.geometry_utils import epsilon
from parasurf.surfaces import Surface

logger = logging.getLogger(__name__)

## corner order of the two triangles of a quad
HALF_QUADS = ((0, 1, 2), (0, 2, 3))


class Triangulation(NamedTuple):
    """Output of the triangulation pass, in emission order."""

    indices: np.ndarray    # (T, 3) grid cell of each corner
    positions: np.ndarray  # (T, 3, 3)
    uvs: np.ndarray        # (T, 3, 2)
    normals: np.ndarray    # (T, 3) unit face normals, zero when degenerate


def quad_count(segments: int, closed: bool) -> int:
    """Number of quads along an axis of ``segments`` cells."""
    if segments <= 0:
        return 0
    return max(segments - 1 + int(bool(closed)), 0)


def sample_grid(surface: Surface, u_segments: int, v_segments: int) -> Tuple[np.ndarray, np.ndarray]:
    """Evaluate ``surface`` on every grid cell.

    Returns ``(params, positions)`` with shapes ``(U*V, 2)`` and ``(U*V, 3)``.
    """

    cells = max(u_segments, 0) * max(v_segments, 0)
    params = np.zeros((cells, 2))
    positions = np.zeros((cells, 3))
    uv = surface.uv_for(u_segments, v_segments)
    for u in range(u_segments):
        for v in range(v_segments):
            i = u * v_segments + v
            param = uv(u, v)
            params[i] = param
            positions[i] = surface.position(param)
    return params, positions


def sample_positions(surface: Surface, u_segments: int, v_segments: int) -> np.ndarray:
    """``(U*V, 3)`` array of grid positions."""
    return sample_grid(surface, u_segments, v_segments)[1]


def quad_corners(u_segments: int, v_segments: int, *,
                 close_u: bool = True, close_v: bool = True) -> np.ndarray:
    """Return a ``(Q, 4)`` array of cell indices, one row per quad.

    Rows are ordered with ``u`` outermost, matching the emission order.
    """

    nu = quad_count(u_segments, close_u)
    nv = quad_count(v_segments, close_v)
    if nu == 0 or nv == 0:
        return np.zeros((0, 4), dtype=np.intp)

    u, v = np.meshgrid(np.arange(nu), np.arange(nv), indexing='ij')
    u = u.ravel()
    v = v.ravel()
    u1 = (u + 1) % u_segments
    v1 = (v + 1) % v_segments
    V = v_segments
    return np.stack([u * V + v, u1 * V + v, u1 * V + v1, u * V + v1], axis=1)


def triangle_indices(corners: np.ndarray) -> np.ndarray:
    """Split quads into triangles: ``(Q, 4) -> (2Q, 3)``, A before B."""
    halves = [corners[:, list(h)] for h in HALF_QUADS]
    return np.stack(halves, axis=1).reshape(-1, 3)


def face_normals(triangles: np.ndarray) -> np.ndarray:
    """Unit normals of ``(T, 3, 3)`` triangles.

    The normal is ``(c1 - c0) x (c2 - c0)``; triangles whose cross product is
    shorter than ``epsilon`` get the zero vector.
    """

    n = np.cross(triangles[:, 1] - triangles[:, 0], triangles[:, 2] - triangles[:, 0])
    length = np.linalg.norm(n, axis=1)
    out = np.zeros_like(n)
    good = length > epsilon
    out[good] = n[good] / length[good, None]
    return out


def triangulate(positions: np.ndarray, params: np.ndarray,
                u_segments: int, v_segments: int, *,
                close_u: bool = True, close_v: bool = True) -> Triangulation:
    """Build the triangles of the grid from fully sampled cell arrays."""

    corners = quad_corners(u_segments, v_segments, close_u=close_u, close_v=close_v)
    indices = triangle_indices(corners)
    tri_positions = positions[indices].reshape(-1, 3, 3)
    tri_uvs = params[indices].reshape(-1, 3, 2)
    normals = face_normals(tri_positions)

    degenerate = int(np.count_nonzero(~normals.any(axis=1)))
    if degenerate:
        logger.debug("%d of %d triangles are degenerate, using zero normals",
                     degenerate, len(indices))
    return Triangulation(indices, tri_positions, tri_uvs, normals)


def flat_normals(tris: Triangulation) -> np.ndarray:
    """Per-vertex normals where each vertex takes its triangle's face normal."""
    return np.repeat(tris.normals, 3, axis=0)


def accumulate_normals(tris: Triangulation, cell_count: int) -> Tuple[np.ndarray, np.ndarray]:
    """Sum face normals per grid cell.

    Returns ``(sums, counts)``: ``sums[i]`` is the sum of the face normals of
    every triangle corner at cell ``i`` and ``counts[i]`` the number of those
    corners.
    """

    cells = tris.indices.ravel()
    sums = np.zeros((cell_count, 3))
    np.add.at(sums, cells, np.repeat(tris.normals, 3, axis=0))
    counts = np.bincount(cells, minlength=cell_count)
    return sums, counts


def cell_normals(tris: Triangulation, cell_count: int) -> np.ndarray:
    """Average face normal of each cell, zero for cells no triangle touches."""
    sums, counts = accumulate_normals(tris, cell_count)
    averaged = np.zeros_like(sums)
    touched = counts > 0
    averaged[touched] = sums[touched] / counts[touched, None]
    return averaged


def smooth_normals(tris: Triangulation, cell_count: int) -> np.ndarray:
    """Per-vertex normals where each vertex takes its cell's averaged normal."""
    return cell_normals(tris, cell_count)[tris.indices.ravel()]


def generate(surface: Surface, u_segments: int, v_segments: int, *,
             smooth: bool = False, close_u: bool = True, close_v: bool = True,
             layout: Layout = Layout.BLOCK) -> VertexBuffer:
    """Tessellate ``surface`` into a packed vertex buffer.

    Segment counts ``<= 0`` give an empty buffer.  No clamping happens here;
    callers wanting a minimum enforce it before calling.
    """

    if u_segments <= 0 or v_segments <= 0:
        logger.debug("empty grid %dx%d for %s", u_segments, v_segments, surface.name)
        return VertexBuffer.empty(layout)

    params, positions = sample_grid(surface, u_segments, v_segments)
    tris = triangulate(positions, params, u_segments, v_segments,
                       close_u=close_u, close_v=close_v)
    if smooth:
        normals = smooth_normals(tris, len(positions))
    else:
        normals = flat_normals(tris)

    buf = pack(tris.positions.reshape(-1, 3), normals, tris.uvs.reshape(-1, 2), layout=layout)
    logger.debug("%s %dx%d: %d triangles, %d floats (%s, %s normals)",
                 surface.name, u_segments, v_segments, buf.triangle_count,
                 len(buf), layout.value, 'smooth' if smooth else 'flat')
    return buf


@dataclass(frozen=True)
class SurfaceGenerator:
    """A surface bound to its tessellation options.

    ``generate(u_segments, v_segments)`` is a pure function of the segment
    counts; nothing is cached between calls.
    """

    surface: Surface
    smooth: bool = False
    close_u: bool = True
    close_v: bool = True
    layout: Layout = Layout.BLOCK

    def generate(self, u_segments: int, v_segments: int) -> VertexBuffer:
        return generate(self.surface, u_segments, v_segments,
                        smooth=self.smooth, close_u=self.close_u,
                        close_v=self.close_v, layout=self.layout)


__all__ = [
    'SurfaceGenerator',
    'Triangulation',
    'accumulate_normals',
    'cell_normals',
    'face_normals',
    'flat_normals',
    'generate',
    'quad_corners',
    'quad_count',
    'sample_grid',
    'sample_positions',
    'smooth_normals',
    'triangle_indices',
    'triangulate',
]
