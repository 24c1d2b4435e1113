# -*- coding: utf-8 -*-
from importlib.metadata import PackageNotFoundError, version

from parasurf.buffer import Attribute, Layout, VertexBuffer, pack
from parasurf.generator import SurfaceGenerator, generate
from parasurf.surfaces import SURFACES, Surface, get_surface

try:
    __version__ = version("parasurf")
except PackageNotFoundError:  # pragma: no cover - handled when package not installed
    __version__ = "unknown"

__all__ = [
    'Attribute',
    'Layout',
    'SURFACES',
    'Surface',
    'SurfaceGenerator',
    'VertexBuffer',
    'generate',
    'get_surface',
    'pack',
]
