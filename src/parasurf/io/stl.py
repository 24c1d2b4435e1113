"""STL export and import for generated vertex buffers."""

from __future__ import annotations

import re
import struct
from typing import Iterable, Iterator, List

from parasurf.buffer import VertexBuffer
from parasurf.geometry_utils import Triangle, to_vec3, triangle_normal

_HEADER_SIZE = 80
_STRUCT_TRIANGLE = struct.Struct('<12fH')


def buffer_triangles(buf: VertexBuffer) -> Iterator[Triangle]:
    """Yield the triangles of ``buf`` with their flat facet normals.

    STL has one normal per facet, so the normal is recomputed from the
    corner positions whatever normals the buffer carries.  Degenerate
    triangles are skipped.
    """

    for corners in buf.triangles():
        v0, v1, v2 = (to_vec3(c) for c in corners)
        normal = triangle_normal(v0, v1, v2)
        if normal is None:
            continue
        yield Triangle(normal=normal, v0=v0, v1=v1, v2=v2)


def write_stl(buf: VertexBuffer, path_or_file, *, binary: bool = True, name: str = 'parasurf') -> int:
    """Write the triangles of ``buf`` to STL and return how many were written.

    ``path_or_file`` can be a filesystem path or an open binary/text stream.
    """

    triangles = list(buffer_triangles(buf))

    if binary:
        _write_binary(triangles, path_or_file, name)
    else:
        _write_ascii(triangles, path_or_file, name)
    return len(triangles)


def _write_binary(triangles: List[Triangle], path_or_file, name: str) -> None:
    close_when_done = False
    if hasattr(path_or_file, 'write'):
        stream = path_or_file
    else:
        stream = open(path_or_file, 'wb')
        close_when_done = True

    try:
        header = (name[:_HEADER_SIZE]).encode('ascii', errors='replace')
        header = header.ljust(_HEADER_SIZE, b' ')
        stream.write(header)
        stream.write(struct.pack('<I', len(triangles)))

        for tri in triangles:
            stream.write(_STRUCT_TRIANGLE.pack(*tri.normal, *tri.v0, *tri.v1, *tri.v2, 0))
    finally:
        if close_when_done:
            stream.close()


def _write_ascii(triangles: Iterable[Triangle], path_or_file, name: str) -> None:
    close_when_done = False
    if hasattr(path_or_file, 'write'):
        stream = path_or_file
    else:
        stream = open(path_or_file, 'w', encoding='ascii')
        close_when_done = True

    try:
        print(f"solid {name}", file=stream)
        for tri in triangles:
            print("  facet normal {:.6e} {:.6e} {:.6e}".format(*tri.normal), file=stream)
            print("    outer loop", file=stream)
            for v in (tri.v0, tri.v1, tri.v2):
                print("      vertex {:.6e} {:.6e} {:.6e}".format(*v), file=stream)
            print("    endloop", file=stream)
            print("  endfacet", file=stream)
        print(f"endsolid {name}", file=stream)
    finally:
        if close_when_done:
            stream.close()


# ---------------------------------------------------------------------------
# STL Import
# ---------------------------------------------------------------------------

_NUMBER = r'([eE\d.+-]+)'
_FACET = re.compile(
    r'facet\s+normal\s+' + r'\s+'.join([_NUMBER] * 3) + r'\s+'
    r'outer\s+loop\s+'
    + r'\s+'.join([r'vertex\s+' + r'\s+'.join([_NUMBER] * 3)] * 3) + r'\s+'
    r'endloop\s+endfacet',
    re.IGNORECASE,
)


def _is_binary_stl(data: bytes) -> bool:
    """Binary STL is an 80-byte header, a 4-byte count and 50 bytes per
    triangle; ASCII STL starts with ``solid`` and contains facet keywords."""

    if len(data) < 84:
        return False
    header = data[:80].decode('ascii', errors='ignore').strip().lower()
    if not header.startswith('solid'):
        return True
    tri_count = struct.unpack('<I', data[80:84])[0]
    if len(data) != 84 + tri_count * 50:
        return False
    rest = data[84:min(200, len(data))]
    return not (b'facet' in rest or b'vertex' in rest)


def _parse_binary_stl(data: bytes) -> List[Triangle]:
    tri_count = struct.unpack('<I', data[80:84])[0]
    triangles = []
    offset = 84
    for _ in range(tri_count):
        if offset + 50 > len(data):
            raise ValueError(f"truncated binary STL: expected {tri_count} triangles")
        values = _STRUCT_TRIANGLE.unpack(data[offset:offset + 50])
        triangles.append(Triangle(normal=tuple(values[0:3]), v0=tuple(values[3:6]),
                                  v1=tuple(values[6:9]), v2=tuple(values[9:12])))
        offset += 50
    return triangles


def _parse_ascii_stl(text: str) -> List[Triangle]:
    triangles = []
    for match in _FACET.finditer(text):
        g = [float(x) for x in match.groups()]
        triangles.append(Triangle(normal=tuple(g[0:3]), v0=tuple(g[3:6]),
                                  v1=tuple(g[6:9]), v2=tuple(g[9:12])))
    return triangles


def read_stl(path_or_file) -> List[Triangle]:
    """Read an STL file (binary or ASCII) and return its triangles."""

    if hasattr(path_or_file, 'read'):
        data = path_or_file.read()
        if isinstance(data, str):
            data = data.encode('utf-8')
    else:
        with open(path_or_file, 'rb') as f:
            data = f.read()

    if _is_binary_stl(data):
        return _parse_binary_stl(data)
    return _parse_ascii_stl(data.decode('utf-8', errors='replace'))


__all__ = ['write_stl', 'read_stl', 'buffer_triangles']
