"""Click CLI commands for ReliefMesh."""

import json
import logging

import click

from .constants import DETAIL_PRESETS
from .errors import ReliefMeshError
from .export import EXPORT_FORMATS, export_mesh, mesh_summary
from .models import Projection, Settings
from .pipeline import generate_mesh
from .transform import DEFAULT_ROTATION_DEG, rotate, scale

logger = logging.getLogger(__name__)


def _parse_value(raw: str):
    lowered = raw.strip().lower()
    if lowered in ('true', 'yes', 'on'):
        return True
    if lowered in ('false', 'no', 'off'):
        return False
    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            continue
    return raw


def _parse_overrides(pairs) -> dict:
    overrides = {}
    for pair in pairs:
        key, sep, value = pair.partition('=')
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got '{pair}'",
                                     param_hint='--set')
        overrides[key.strip()] = _parse_value(value)
    return overrides


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Log per-stage details')
def cli(verbose: bool):
    """ReliefMesh CLI for turning images into printable relief meshes."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
                        format='%(asctime)s - %(levelname)s - %(message)s')


@cli.command()
@click.argument('image', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', default='relief.stl', help='Output mesh path')
@click.option('--format', 'file_type', type=click.Choice(sorted(EXPORT_FORMATS)),
              default=None, help='Export format (default: from output suffix)')
@click.option('--resolution', '-r', type=int, default=None, help='Grid size')
@click.option('--detail-level', type=click.Choice(list(DETAIL_PRESETS)),
              default=None, help='Named resolution preset')
@click.option('--projection', '-p', type=click.Choice([p.value for p in Projection]),
              default=Projection.plane.value, help='Surface embedding')
@click.option('--depth', type=float, default=None, help='Relief depth')
@click.option('--base-height', type=float, default=None, help='Base thickness')
@click.option('--invert', is_flag=True, help='Bright areas become low')
@click.option('--open-sheet', is_flag=True, help='Skip the base and side walls')
@click.option('--no-optimize', is_flag=True, help='Keep degenerate faces')
@click.option('--set', 'overrides', multiple=True, metavar='KEY=VALUE',
              help='Override any setting, e.g. --set bilateralFilter=0')
@click.option('--rotate', 'rotations', multiple=True, type=click.Choice(['x', 'y', 'z']),
              help='Rotate the finished mesh about an axis (repeatable)')
@click.option('--rotate-degrees', type=float, default=DEFAULT_ROTATION_DEG,
              show_default=True, help='Angle for each --rotate')
@click.option('--scale', 'scale_factor', type=float, default=None,
              help='Uniform scale applied after rotation')
def convert(image, output, file_type, resolution, detail_level, projection,
            depth, base_height, invert, open_sheet, no_optimize, overrides,
            rotations, rotate_degrees, scale_factor):
    """Convert an image into a relief mesh file."""
    values = Settings().to_dict()
    values['projection'] = projection
    if resolution is not None:
        values['resolution'] = resolution
    if depth is not None:
        values['depth'] = depth
    if base_height is not None:
        values['base_height'] = base_height
    if invert:
        values['invert_depth'] = True
    if open_sheet:
        values['generate_solid'] = False
    if no_optimize:
        values['mesh_optimization'] = False

    try:
        settings = Settings.from_dict(values)
        if detail_level:
            settings = settings.with_detail_level(detail_level)
        if overrides:
            # camelCase override keys land after their snake_case twins
            settings = Settings.from_dict(
                {**settings.to_dict(), **_parse_overrides(overrides)})

        def _progress(pct, msg):
            click.echo(f"[{pct:3.0f}%] {msg}")

        mesh = generate_mesh(image, settings, progress_callback=_progress)
        for axis in rotations:
            mesh = rotate(mesh, axis, rotate_degrees)
        if scale_factor is not None:
            mesh = scale(mesh, scale_factor)
        path = export_mesh(mesh, output, file_type=file_type)
    except (ReliefMeshError, ValueError) as e:
        logger.error(f"Error generating relief mesh: {e}")
        raise click.ClickException(str(e))

    summary = mesh_summary(mesh)
    wt = '✓' if summary['watertight'] else '✗'
    click.echo(f"\n[{wt}] {path}: {summary['vertices']} vertices, "
               f"{summary['faces']} faces")


@cli.command()
def presets():
    """List the detail-level resolution presets."""
    for name, res in DETAIL_PRESETS.items():
        click.echo(f"  {name:<8} {res}x{res}")


@cli.command()
@click.argument('mesh_path', type=click.Path(exists=True, dir_okay=False))
def info(mesh_path):
    """Print vertex/face counts and closure flags for a mesh file."""
    import trimesh

    try:
        loaded = trimesh.load(mesh_path, force='mesh')
    except ValueError as e:
        raise click.ClickException(f"Could not load {mesh_path}: {e}")
    click.echo(json.dumps(mesh_summary(loaded), indent=2))


@cli.command()
@click.option('--host', default='127.0.0.1', help='Bind address')
@click.option('--port', default=8000, type=int, help='Bind port')
def serve(host: str, port: int):
    """Run the HTTP conversion service."""
    import uvicorn

    uvicorn.run("backend.app:app", host=host, port=port)


if __name__ == '__main__':
    cli()
