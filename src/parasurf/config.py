"""Generation settings, loaded from YAML/JSON files or built from the CLI.

This is the boundary where segment counts are validated; the generator
itself accepts any integer.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

from parasurf.buffer import Layout, VertexBuffer
from parasurf.generator import SurfaceGenerator
from parasurf.surfaces import SURFACES, Surface, get_surface

MIN_SEGMENTS = 2
DEFAULT_SEGMENTS = 64


class ConfigError(ValueError):
    """Raised for invalid generation settings."""


@dataclass(frozen=True)
class GeneratorConfig:
    """Everything needed to produce one vertex buffer."""

    surface: str = 'torus'
    u_segments: int = DEFAULT_SEGMENTS
    v_segments: int = DEFAULT_SEGMENTS
    smooth: bool = False
    close_u: bool = True
    close_v: bool = True
    layout: Layout = Layout.BLOCK
    params: Dict[str, Any] = field(default_factory=dict, hash=False)
    min_segments: int = MIN_SEGMENTS

    def __post_init__(self):
        if self.surface not in SURFACES:
            known = ', '.join(sorted(SURFACES))
            raise ConfigError(f"unknown surface {self.surface!r} (known: {known})")
        for name in ('u_segments', 'v_segments', 'min_segments'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
        for name in ('u_segments', 'v_segments'):
            if getattr(self, name) < self.min_segments:
                raise ConfigError(
                    f"{name} must be at least {self.min_segments}, got {getattr(self, name)}")
        for name in ('smooth', 'close_u', 'close_v'):
            if not isinstance(getattr(self, name), bool):
                raise ConfigError(f"{name} must be true or false")
        if not isinstance(self.layout, Layout):
            try:
                object.__setattr__(self, 'layout', Layout(self.layout))
            except ValueError:
                choices = ', '.join(l.value for l in Layout)
                raise ConfigError(f"layout must be one of: {choices}") from None
        if not isinstance(self.params, Mapping):
            raise ConfigError("params must be a mapping")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> 'GeneratorConfig':
        """Build a config from a plain dictionary, rejecting unknown keys.

        ``segments`` sets both segment counts unless they are given
        explicitly.
        """

        data = dict(data or {})
        segments = data.pop('segments', None)
        if segments is not None:
            data.setdefault('u_segments', segments)
            data.setdefault('v_segments', segments)
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)

    def to_mapping(self) -> Dict[str, Any]:
        return {
            'surface': self.surface,
            'u_segments': self.u_segments,
            'v_segments': self.v_segments,
            'smooth': self.smooth,
            'close_u': self.close_u,
            'close_v': self.close_v,
            'layout': self.layout.value,
            'params': dict(self.params),
        }

    def with_overrides(self, **changes) -> 'GeneratorConfig':
        """Copy of this config with the non-``None`` ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def build_surface(self) -> Surface:
        try:
            return get_surface(self.surface, **self.params)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"bad parameters for {self.surface}: {exc}") from exc

    def generator(self) -> SurfaceGenerator:
        return SurfaceGenerator(self.build_surface(), smooth=self.smooth,
                                close_u=self.close_u, close_v=self.close_v,
                                layout=self.layout)

    def generate(self) -> VertexBuffer:
        return self.generator().generate(self.u_segments, self.v_segments)


def load_config(path: Path | str) -> GeneratorConfig:
    """Read a :class:`GeneratorConfig` from a YAML file (JSON by suffix)."""

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"config not found: {path}")
    with path.open('r', encoding='utf-8') as fp:
        if path.suffix == '.json':
            data = json.load(fp)
        else:
            import yaml
            data = yaml.safe_load(fp) or {}
    if not isinstance(data, Mapping):
        raise ConfigError(f"{path}: expected a mapping at top level")
    return GeneratorConfig.from_mapping(data)


__all__ = ['ConfigError', 'GeneratorConfig', 'load_config', 'MIN_SEGMENTS', 'DEFAULT_SEGMENTS']
