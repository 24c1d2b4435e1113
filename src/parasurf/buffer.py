"""Packed vertex buffers handed to a renderer.

Every triangle vertex carries 8 floats: position (3), normal (3) and texture
coordinate (2).  Vertices are duplicated per triangle; there is no index
buffer.  Two layouts exist and they are not binary compatible:

``Layout.BLOCK``
    ``[n*3 positions][n*3 normals][n*2 uvs]``
``Layout.INTERLEAVED``
    ``[x, y, z, nx, ny, nz, u, v]`` repeated ``n`` times
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List

import numpy as np

POSITION_SIZE = 3
NORMAL_SIZE = 3
UV_SIZE = 2
FLOATS_PER_VERTEX = POSITION_SIZE + NORMAL_SIZE + UV_SIZE
FLOAT_BYTES = 4
DTYPE = np.float32

# offsets inside one interleaved vertex, in floats
POSITION_OFFSET = 0
NORMAL_OFFSET = POSITION_OFFSET + POSITION_SIZE
UV_OFFSET = NORMAL_OFFSET + NORMAL_SIZE


class Layout(Enum):
    """Arrangement of the attributes inside a :class:`VertexBuffer`."""
    BLOCK = 'block'
    INTERLEAVED = 'interleaved'


@dataclass(frozen=True)
class Attribute:
    """Binding information for one vertex attribute, in bytes."""

    name: str
    components: int
    stride: int
    offset: int


@dataclass(frozen=True, eq=False)
class VertexBuffer:
    """A flat float32 array plus the vertex count and layout needed to read it."""

    data: np.ndarray
    vertex_count: int
    layout: Layout = Layout.BLOCK

    def __post_init__(self):
        if self.data.ndim != 1 or self.data.dtype != DTYPE:
            raise ValueError("vertex buffer data must be a flat float32 array")
        if len(self.data) != FLOATS_PER_VERTEX * self.vertex_count:
            raise ValueError(
                f"buffer holds {len(self.data)} floats, expected "
                f"{FLOATS_PER_VERTEX} x {self.vertex_count}")

    @property
    def triangle_count(self) -> int:
        return self.vertex_count // 3

    def __len__(self):
        return len(self.data)

    def _block(self, offset, size):
        start = offset * self.vertex_count
        stop = start + size * self.vertex_count
        return self.data[start:stop].reshape(self.vertex_count, size)

    def _column(self, offset, size):
        rows = self.data.reshape(self.vertex_count, FLOATS_PER_VERTEX)
        return rows[:, offset:offset + size]

    def _attribute(self, offset, size):
        if self.layout is Layout.BLOCK:
            return self._block(offset, size)
        return self._column(offset, size)

    def positions(self) -> np.ndarray:
        """``(vertex_count, 3)`` view of the positions."""
        return self._attribute(POSITION_OFFSET, POSITION_SIZE)

    def normals(self) -> np.ndarray:
        """``(vertex_count, 3)`` view of the normals."""
        return self._attribute(NORMAL_OFFSET, NORMAL_SIZE)

    def uvs(self) -> np.ndarray:
        """``(vertex_count, 2)`` view of the texture coordinates."""
        return self._attribute(UV_OFFSET, UV_SIZE)

    def triangles(self) -> np.ndarray:
        """``(triangle_count, 3, 3)`` array of triangle corner positions."""
        return self.positions().reshape(self.triangle_count, 3, POSITION_SIZE)

    def as_layout(self, layout: Layout) -> 'VertexBuffer':
        """Return this buffer repacked into ``layout``."""
        if layout is self.layout:
            return self
        return pack(self.positions(), self.normals(), self.uvs(), layout=layout)

    def attributes(self) -> List[Attribute]:
        """Stride and byte offset of each attribute, for
        ``glVertexAttribPointer``-style binding."""

        if self.layout is Layout.INTERLEAVED:
            stride = FLOATS_PER_VERTEX * FLOAT_BYTES
            return [
                Attribute('position', POSITION_SIZE, stride, POSITION_OFFSET * FLOAT_BYTES),
                Attribute('normal', NORMAL_SIZE, stride, NORMAL_OFFSET * FLOAT_BYTES),
                Attribute('uv', UV_SIZE, stride, UV_OFFSET * FLOAT_BYTES),
            ]
        n = self.vertex_count * FLOAT_BYTES
        return [
            Attribute('position', POSITION_SIZE, POSITION_SIZE * FLOAT_BYTES, POSITION_OFFSET * n),
            Attribute('normal', NORMAL_SIZE, NORMAL_SIZE * FLOAT_BYTES, NORMAL_OFFSET * n),
            Attribute('uv', UV_SIZE, UV_SIZE * FLOAT_BYTES, UV_OFFSET * n),
        ]

    def tobytes(self) -> bytes:
        """Raw little-endian bytes, ready for a GPU upload."""
        return self.data.astype('<f4', copy=False).tobytes()

    @classmethod
    def empty(cls, layout: Layout = Layout.BLOCK) -> 'VertexBuffer':
        return cls(np.zeros(0, dtype=DTYPE), 0, layout)


def pack(positions, normals, uvs, *, layout: Layout = Layout.BLOCK) -> VertexBuffer:
    """Pack per-vertex arrays into one :class:`VertexBuffer`.

    ``positions`` and ``normals`` are ``(n, 3)``, ``uvs`` is ``(n, 2)``.
    """

    positions = np.asarray(positions, dtype=DTYPE).reshape(-1, POSITION_SIZE)
    normals = np.asarray(normals, dtype=DTYPE).reshape(-1, NORMAL_SIZE)
    uvs = np.asarray(uvs, dtype=DTYPE).reshape(-1, UV_SIZE)
    n = len(positions)
    if len(normals) != n or len(uvs) != n:
        raise ValueError("positions, normals and uvs must have the same length")

    if layout is Layout.INTERLEAVED:
        data = np.hstack((positions, normals, uvs)).ravel()
    else:
        data = np.concatenate((positions.ravel(), normals.ravel(), uvs.ravel()))
    return VertexBuffer(np.ascontiguousarray(data, dtype=DTYPE), n, layout)


__all__ = [
    'Attribute',
    'Layout',
    'VertexBuffer',
    'pack',
    'FLOATS_PER_VERTEX',
    'POSITION_SIZE',
    'NORMAL_SIZE',
    'UV_SIZE',
    'FLOAT_BYTES',
]
