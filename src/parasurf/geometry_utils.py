"""Small 3-vector helpers shared by the surfaces, generator and exporters."""

from __future__ import annotations

from dataclasses import dataclass
from math import sqrt
from typing import Sequence, Tuple

Vec3 = Tuple[float, float, float]

## tolerance below which a cross product is treated as zero length
epsilon = 1e-12

ZERO: Vec3 = (0.0, 0.0, 0.0)


@dataclass(frozen=True)
class Triangle:
    """Immutable triangle representation in XYZ space."""

    normal: Vec3
    v0: Vec3
    v1: Vec3
    v2: Vec3


def to_vec3(point_like: Sequence[float]) -> Vec3:
    """Return the XYZ components of a point-like sequence as a tuple."""

    if len(point_like) < 3:
        raise ValueError("value must have at least three components")
    return float(point_like[0]), float(point_like[1]), float(point_like[2])


def sub(a: Sequence[float], b: Sequence[float]) -> Vec3:
    """3 vector, `a - b`"""
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def cross(a: Sequence[float], b: Sequence[float]) -> Vec3:
    """3 vector cross product `a x b`"""
    return (a[1] * b[2] - a[2] * b[1],
            a[2] * b[0] - a[0] * b[2],
            a[0] * b[1] - a[1] * b[0])


def dot(a: Sequence[float], b: Sequence[float]) -> float:
    """3 vector ``a`` dot ``b``"""
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def mag(a: Sequence[float]) -> float:
    """magnitude of 3 vector ``a``"""
    return sqrt(dot(a, a))


def normalize(a: Sequence[float], tol: float = epsilon) -> Vec3:
    """Return ``a`` scaled to unit length, or the zero vector when ``a`` is
    shorter than ``tol``."""

    length = mag(a)
    if length <= tol:
        return ZERO
    return (a[0] / length, a[1] / length, a[2] / length)


def triangle_normal(v0: Vec3, v1: Vec3, v2: Vec3) -> Vec3 | None:
    """Return the unit normal of a triangle or ``None`` if degenerate.

    The normal is ``(v1 - v0) x (v2 - v0)``, so counter-clockwise triangles
    seen from the front face the viewer.
    """

    n = cross(sub(v1, v0), sub(v2, v0))
    if mag(n) <= epsilon:
        return None
    return normalize(n)


__all__ = [
    "Triangle",
    "Vec3",
    "ZERO",
    "epsilon",
    "to_vec3",
    "sub",
    "cross",
    "dot",
    "mag",
    "normalize",
    "triangle_normal",
]
