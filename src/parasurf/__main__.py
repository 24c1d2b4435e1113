#!/usr/bin/env python3
"""
Command line front end for parasurf.

Usage:
    python -m parasurf list
    python -m parasurf generate SURFACE [--segments N] [--smooth] [--open-u]
        [--param NAME=VALUE ...] [--stl FILE] [--raw FILE]
    python -m parasurf generate --config settings.yaml

Examples:
    # Boy's surface with smooth normals, summary on stdout
    python -m parasurf generate boy --segments 128 --smooth

    # Moebius band, open across the band, written as ASCII STL
    python -m parasurf generate mobius -u 96 -V 8 --open-v \
        --param half_width=0.3 --stl mobius.stl --ascii

    # Raw float32 buffer for a renderer, interleaved layout
    python -m parasurf generate torus --layout interleaved --raw torus.bin
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from parasurf.buffer import Layout
from parasurf.config import ConfigError, GeneratorConfig, load_config
from parasurf.io.stl import write_stl
from parasurf.surfaces import SURFACES, get_surface

logger = logging.getLogger('parasurf')


def parse_param(param_str: str) -> tuple:
    """Parse a parameter string like 'name=value' into (name, typed_value)."""
    if '=' not in param_str:
        raise ValueError(f"Invalid parameter format: {param_str} (expected name=value)")

    name, value_str = param_str.split('=', 1)
    name = name.strip()
    value_str = value_str.strip()

    for convert in (int, float):
        try:
            return (name, convert(value_str))
        except ValueError:
            pass
    return (name, value_str)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='parasurf',
        description='Tessellate parametric surfaces into packed vertex buffers.')
    parser.add_argument('-v', '--verbose', action='store_true', help='log progress to stderr')
    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('list', help='list the available surfaces')

    gen = sub.add_parser('generate', help='tessellate a surface')
    gen.add_argument('surface', nargs='?', help='surface name (see "list")')
    gen.add_argument('--config', type=Path, help='YAML or JSON settings file')
    gen.add_argument('--segments', type=int, help='segment count for both axes')
    gen.add_argument('-u', '--u-segments', type=int, help='segment count along u')
    gen.add_argument('-V', '--v-segments', type=int, help='segment count along v')
    gen.add_argument('--smooth', action='store_true', help='per-cell averaged normals')
    gen.add_argument('--open-u', action='store_true', help='do not wrap the u axis')
    gen.add_argument('--open-v', action='store_true', help='do not wrap the v axis')
    gen.add_argument('--layout', choices=[l.value for l in Layout], help='buffer layout')
    gen.add_argument('--param', action='append', default=[], metavar='NAME=VALUE',
                     help='surface parameter, may be repeated')
    gen.add_argument('--stl', type=Path, help='write the mesh as STL')
    gen.add_argument('--ascii', action='store_true', help='ASCII instead of binary STL')
    gen.add_argument('--raw', type=Path, help='write the float32 buffer to a file')
    return parser


def resolve_config(args: argparse.Namespace) -> GeneratorConfig:
    """Merge the optional config file with command line overrides."""

    config = load_config(args.config) if args.config else None
    if config is None and not args.surface:
        raise ConfigError("a surface name or --config is required")

    u_segments = args.u_segments if args.u_segments is not None else args.segments
    v_segments = args.v_segments if args.v_segments is not None else args.segments
    params: Dict[str, Any] = dict(config.params) if config else {}
    for item in args.param:
        name, value = parse_param(item)
        params[name] = value

    overrides = dict(
        u_segments=u_segments,
        v_segments=v_segments,
        smooth=True if args.smooth else None,
        close_u=False if args.open_u else None,
        close_v=False if args.open_v else None,
        layout=args.layout,
        params=params or None,
    )
    if config is None:
        data = {k: v for k, v in overrides.items() if v is not None}
        return GeneratorConfig.from_mapping(dict(data, surface=args.surface))
    return config.with_overrides(surface=args.surface, **overrides)


def summarize(config: GeneratorConfig, buf) -> Dict[str, Any]:
    summary = dict(config.to_mapping())
    summary.update(
        normals='smooth' if config.smooth else 'flat',
        triangles=buf.triangle_count,
        vertices=buf.vertex_count,
        floats=len(buf),
    )
    if buf.vertex_count:
        positions = buf.positions()
        summary['bounds'] = [positions.min(axis=0).tolist(), positions.max(axis=0).tolist()]
    return summary


def cmd_list() -> int:
    for name in sorted(SURFACES):
        surf = get_surface(name)
        params = ', '.join(f"{k}={v}" for k, v in surf.params.items()
                           if isinstance(v, (int, float)))
        print(f"{name:12s} {params}")
    return 0


def cmd_generate(args: argparse.Namespace) -> int:
    config = resolve_config(args)
    logger.info("generating %s at %dx%d", config.surface, config.u_segments, config.v_segments)
    buf = config.generate()

    summary = summarize(config, buf)
    if args.stl:
        summary['stl_triangles'] = write_stl(buf, args.stl, binary=not args.ascii,
                                             name=config.surface)
        summary['stl'] = str(args.stl)
        logger.info("wrote %s", args.stl)
    if args.raw:
        args.raw.write_bytes(buf.tobytes())
        summary['raw'] = str(args.raw)
        logger.info("wrote %d bytes to %s", len(buf) * 4, args.raw)

    print(json.dumps(summary, indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )

    if args.command == 'list':
        return cmd_list()

    try:
        return cmd_generate(args)
    except (ValueError, FileNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == '__main__':
    sys.exit(main())
