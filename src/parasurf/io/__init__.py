"""I/O utilities for parasurf."""

from .stl import read_stl, write_stl

__all__ = ['read_stl', 'write_stl']
