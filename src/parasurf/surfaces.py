"""Parametric surface definitions for parasurf.

A surface is a pair of plain functions rather than a class hierarchy:

- ``uv(u, v, u_segments, v_segments)`` maps integer grid indices to a
  coordinate in the surface's native parameter domain.  It receives the grid
  size so it can scale indices into that domain.
- ``position(param)`` maps a parameter coordinate to a 3D point.

Both must be deterministic and defined for every ``0 <= u < u_segments`` and
``0 <= v < v_segments``.  Singular points are not special-cased; the
generator turns degenerate triangles into zero normals.

Surface types:

- plane: identity plane over raw grid indices, ``(u, v) -> (u, v, 0)``
- quad: bilinear patch between four corner points over [0,1]x[0,1]
- torus: ring torus over [0,2pi)x[0,2pi)
- sphere: latitude/longitude sphere including both poles
- mobius: Moebius band, doubled in ``u`` so the ``u`` axis wraps cleanly
- klein: figure-8 Klein bottle immersion, doubled in ``u``
- boy: Bryant-Kusner parametrization of Boy's surface, evaluated on the
  Riemann sphere through stereographic coordinates
- projective: Apery's trigonometric immersion of the projective plane

Copyright (c) 2026 parasurf contributors
MIT License
"""

from __future__ import annotations

import cmath
from dataclasses import dataclass, field
from math import pi, sin, cos, tan, sqrt
from typing import Any, Callable, Dict, Mapping, Sequence, Tuple

from parasurf.geometry_utils import Vec3, epsilon, to_vec3

ParamCoord = Tuple[float, float]
UVFunction = Callable[[int, int, int, int], ParamCoord]
PositionFunction = Callable[[ParamCoord], Vec3]

pi2 = 2.0 * pi


@dataclass(frozen=True)
class Surface:
    """A pluggable parametric surface: grid-to-parameter and
    parameter-to-position mappings."""

    name: str
    uv: UVFunction
    position: PositionFunction
    params: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def uv_for(self, u_segments: int, v_segments: int) -> Callable[[int, int], ParamCoord]:
        """Bind the grid size, returning ``uv(u, v)`` for that grid."""

        def uv(u: int, v: int) -> ParamCoord:
            return self.uv(u, v, u_segments, v_segments)

        return uv

    def evaluate(self, u: int, v: int, u_segments: int, v_segments: int) -> Vec3:
        """Position of grid cell ``(u, v)`` on a ``u_segments x v_segments`` grid."""
        return self.position(self.uv(u, v, u_segments, v_segments))


def _fraction(i: int, segments: int) -> float:
    """``i / segments``; samples a periodic axis without repeating its end."""
    if segments <= 0:
        return 0.0
    return i / segments


def _span(i: int, segments: int) -> float:
    """``i / (segments - 1)``; samples a bounded axis including both ends."""
    if segments <= 1:
        return 0.0
    return i / (segments - 1)


def _positive(value, what):
    value = float(value)
    if value <= 0:
        raise ValueError(f"{what} must be positive")
    return value


# -----------------------------------------------------------------------------
# Plane and bilinear quad
# -----------------------------------------------------------------------------

def plane_surface():
    """Identity plane: grid index ``(u, v)`` maps to ``(u, v, 0)``.

    Not periodic, so the quads that close an axis fold back across the whole
    grid.  Tessellate with open axes for a flat sheet.
    """

    def uv(u, v, u_segments, v_segments):
        return (float(u), float(v))

    def position(param):
        return (float(param[0]), float(param[1]), 0.0)

    return Surface('plane', uv, position)


def quad_surface(corners: Sequence[Sequence[float]] = ((0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0))):
    """Bilinear patch through four corners given in ``(0,0), (1,0), (1,1),
    (0,1)`` parameter order.

    Parameters are spread over [0,1] including both ends, so the patch is
    meant to be tessellated with open axes.
    """
    if len(corners) != 4:
        raise ValueError("quad needs exactly four corners")
    p00, p10, p11, p01 = (to_vec3(c) for c in corners)

    def uv(u, v, u_segments, v_segments):
        return (_span(u, u_segments), _span(v, v_segments))

    def position(param):
        s, t = param
        return tuple((1 - s) * (1 - t) * p00[i] + s * (1 - t) * p10[i]
                     + s * t * p11[i] + (1 - s) * t * p01[i] for i in range(3))

    return Surface('quad', uv, position, {'corners': (p00, p10, p11, p01)})


# -----------------------------------------------------------------------------
# Torus and sphere
# -----------------------------------------------------------------------------

def torus_surface(major_radius=1.0, minor_radius=0.4):
    """Ring torus around the z axis.

    - u: angle around the major circle (0 to 2*pi)
    - v: angle around the tube (0 to 2*pi)

    Both axes are periodic; normals from the generator point outward.
    """
    R = _positive(major_radius, "major radius")
    r = _positive(minor_radius, "minor radius")
    if r >= R:
        raise ValueError("Minor radius must be less than major radius")

    def uv(u, v, u_segments, v_segments):
        return (pi2 * _fraction(u, u_segments), pi2 * _fraction(v, v_segments))

    def position(param):
        a, b = param
        factor = R + r * cos(b)
        return (factor * cos(a), factor * sin(a), r * sin(b))

    return Surface('torus', uv, position, {'major_radius': R, 'minor_radius': r})


def sphere_surface(radius=1.0):
    """Sphere parametrized by longitude and latitude.

    - u: longitude (0 to 2*pi, periodic)
    - v: latitude (-pi/2 to pi/2, both poles sampled)

    Every quad touching a pole has a collapsed edge, so the sphere is the
    reference case for degenerate triangles.  Close only the ``u`` axis.
    """
    r = _positive(radius, "radius")

    def uv(u, v, u_segments, v_segments):
        return (pi2 * _fraction(u, u_segments), -pi / 2 + pi * _span(v, v_segments))

    def position(param):
        lon, lat = param
        cos_lat = cos(lat)
        return (r * cos_lat * cos(lon), r * cos_lat * sin(lon), r * sin(lat))

    return Surface('sphere', uv, position, {'radius': r})


# -----------------------------------------------------------------------------
# Non-orientable surfaces
# -----------------------------------------------------------------------------

def mobius_surface(radius=1.0, half_width=0.4):
    """Moebius band of centre radius ``radius``.

    - u: angle along the band, run over (0 to 4*pi) so the band is traced
      twice and the ``u`` axis wraps without the half twist
    - v: position across the band (-half_width to half_width, both edges)

    Close only the ``u`` axis.
    """
    R = _positive(radius, "radius")
    w = _positive(half_width, "half width")

    def uv(u, v, u_segments, v_segments):
        return (2 * pi2 * _fraction(u, u_segments), -w + 2 * w * _span(v, v_segments))

    def position(param):
        t, s = param
        factor = R + s * cos(t / 2)
        return (factor * cos(t), factor * sin(t), s * sin(t / 2))

    return Surface('mobius', uv, position, {'radius': R, 'half_width': w})


def klein_surface(radius=2.0):
    """Figure-8 immersion of the Klein bottle.

    - u: (0 to 4*pi), the doubled range makes both axes periodic
    - v: (0 to 2*pi)
    """
    r = _positive(radius, "radius")

    def uv(u, v, u_segments, v_segments):
        return (2 * pi2 * _fraction(u, u_segments), pi2 * _fraction(v, v_segments))

    def position(param):
        a, b = param
        c, s = cos(a / 2), sin(a / 2)
        factor = r + c * sin(b) - s * sin(2 * b)
        return (factor * cos(a), factor * sin(a), s * sin(b) + c * sin(2 * b))

    return Surface('klein', uv, position, {'radius': r})


def boy_surface(scale=1.0):
    """Boy's surface from the Bryant-Kusner formula.

    With ``D = w**6 + sqrt(5) w**3 - 1``::

        g1 = -3/2 Im(w (1 - w**4) / D)
        g2 = -3/2 Re(w (1 + w**4) / D)
        g3 = Im((1 + w**6) / D) - 1/2
        p  = (g1, g2, g3) / (g1**2 + g2**2 + g3**2)

    The formula is invariant under the antipodal map ``w -> -1/conj(w)``, so
    evaluating it on the whole Riemann sphere covers the surface twice and
    closes both grid axes.

    - u: longitude on the sphere (0 to 2*pi)
    - v: polar angle from the south pole (0 to pi, exclusive); the
      stereographic radius is ``tan(v/2)`` and the excluded north pole maps
      to the same point as the south pole
    """
    k = _positive(scale, "scale")
    sqrt5 = sqrt(5.0)

    def uv(u, v, u_segments, v_segments):
        return (pi2 * _fraction(u, u_segments), pi * _fraction(v, v_segments))

    def position(param):
        theta, phi = param
        w = cmath.rect(tan(phi / 2), theta)
        w3 = w ** 3
        w6 = w3 * w3
        den = w6 + sqrt5 * w3 - 1
        if abs(den) < epsilon:
            # pole of the rational map: inverted to the triple point
            return (0.0, 0.0, 0.0)
        w4 = w ** 4
        g1 = -1.5 * (w * (1 - w4) / den).imag
        g2 = -1.5 * (w * (1 + w4) / den).real
        g3 = ((1 + w6) / den).imag - 0.5
        g = g1 * g1 + g2 * g2 + g3 * g3
        if g < epsilon:
            return (0.0, 0.0, 0.0)
        return (k * g1 / g, k * g2 / g, k * g3 / g)

    return Surface('boy', uv, position, {'scale': k})


def projective_surface(alpha=1.0, scale=1.0):
    """Apery's immersion family of the real projective plane.

    With ``d = 2 - alpha sqrt(2) sin(3u) sin(2v)``::

        x = (sqrt(2) cos(v)**2 cos(2u) + cos(u) sin(2v)) / d
        y = (sqrt(2) cos(v)**2 sin(2u) - sin(u) sin(2v)) / d
        z = 3 cos(v)**2 / d

    ``alpha = 1`` gives Boy's surface and ``alpha = 0`` the Roman surface.

    - u: (0 to 2*pi)
    - v: (0 to pi)

    The map is periodic in both parameters on that rectangle (it is a double
    cover of the projective plane), so both axes close.
    """
    a = float(alpha)
    if not 0.0 <= a <= 1.0:
        raise ValueError("alpha must lie in [0, 1]")
    k = _positive(scale, "scale")
    sqrt2 = sqrt(2.0)

    def uv(u, v, u_segments, v_segments):
        return (pi2 * _fraction(u, u_segments), pi * _fraction(v, v_segments))

    def position(param):
        s, t = param
        cos2 = cos(t) ** 2
        sin2t = sin(2 * t)
        d = 2 - a * sqrt2 * sin(3 * s) * sin2t
        return (k * (sqrt2 * cos2 * cos(2 * s) + cos(s) * sin2t) / d,
                k * (sqrt2 * cos2 * sin(2 * s) - sin(s) * sin2t) / d,
                k * 3 * cos2 / d)

    return Surface('projective', uv, position, {'alpha': a, 'scale': k})


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------

SURFACES: Dict[str, Callable[..., Surface]] = {
    'plane': plane_surface,
    'quad': quad_surface,
    'torus': torus_surface,
    'sphere': sphere_surface,
    'mobius': mobius_surface,
    'klein': klein_surface,
    'boy': boy_surface,
    'projective': projective_surface,
}


def get_surface(name: str, **params) -> Surface:
    """Build the registered surface ``name`` with keyword ``params``."""
    try:
        factory = SURFACES[name]
    except KeyError:
        known = ', '.join(sorted(SURFACES))
        raise KeyError(f"unknown surface {name!r} (known: {known})") from None
    return factory(**params)


__all__ = [
    'ParamCoord',
    'Surface',
    'SURFACES',
    'get_surface',
    'plane_surface',
    'quad_surface',
    'torus_surface',
    'sphere_surface',
    'mobius_surface',
    'klein_surface',
    'boy_surface',
    'projective_surface',
]
