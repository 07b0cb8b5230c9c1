"""
CrowdSmith CLI - Command-line interface for merging character GLBs
"""

import json
import logging
import sys

import click
from pydantic import ValidationError

from crowdsmith.document import io
from crowdsmith.exceptions import CrowdsmithError
from crowdsmith.inspect import human_file_size, inspect as inspect_document
from crowdsmith.pipeline import merge_assets
from crowdsmith.schema.options import MergeOptions


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _print_sizes(sizes: dict) -> None:
    click.echo(f"    Meshes\t{human_file_size(sizes['meshes'])}")
    click.echo(f"    Textures\t{human_file_size(sizes['textures'])}")
    click.echo(f"    VRAM\t{human_file_size(sizes['vram'])}")


@click.group()
@click.version_option()
def cli():
    """
    CrowdSmith - Merge character GLBs into a single crowd-ready GLB.

    Examples:
        crowdsmith merge -f body.glb -f hair.glb -o crowd.glb --merge
        crowdsmith inspect crowd.glb
    """
    pass


@cli.command()
@click.option('-f', '--files', 'files', multiple=True, required=True, help='GLB file to merge (repeatable)')
@click.option('-o', '--output', required=True, help='Path for the output GLB file')
@click.option('-l', '--lod', default=0, type=int, show_default=True,
              help='Level of detail 0-3; higher levels drop triangles, primitives and texture slots')
@click.option('-m', '--merge', is_flag=True, help='Merge all meshes into one and textures into one atlas per slot')
@click.option('-r', '--resize', default=None, type=int,
              help='Resize textures to fit this resolution (ignored with --merge, which sizes by LOD)')
@click.option('-d', '--draco', default=None, type=int, help='Compress geometry with Draco, level 0-10 (10 = smallest)')
@click.option('-i', '--inspect', 'inspecting', is_flag=True, help='Print the output GLB structure as JSON')
@click.option('--verbose', '-v', is_flag=True, help='Show pipeline progress')
def merge(files, output, lod, merge, resize, draco, inspecting, verbose):
    """
    Merge several GLBs into a single one.

    Examples:
        crowdsmith merge -f a.glb -f b.glb -o out.glb
        crowdsmith merge -f a.glb -f b.glb -o out.glb --merge --lod 2 --draco 7
    """
    _configure_logging(verbose)
    try:
        options = MergeOptions(
            files=list(files),
            output=output,
            lod=lod,
            merge=merge,
            resize=resize,
            draco=draco,
            inspect=inspecting,
        )

        params = options.describe()
        if params:
            click.echo(f"Params: {', '.join(params)}")

        result = merge_assets(options)

        click.echo(f"Documents: {result.documents}")
        if result.layout is not None:
            layout = result.layout
            click.echo(f"Primitives: {result.primitives}")
            click.echo(
                f"Atlas tiles: {layout.tiles_count}, size: {layout.atlas_width}x{layout.atlas_width}, "
                f"resolution: {layout.resolution}x{layout.resolution}"
            )
        if options.lod > 0:
            click.echo(
                f"Vertices Reduced {result.vertex_reduction}% from: "
                f"{result.vertices_before:,} to: {result.vertices_after:,}"
            )

        click.echo("Sizes:")
        click.echo(f"    Before\t{human_file_size(result.size_before)}")
        click.echo(f"    After\t{human_file_size(result.size_after)}")
        click.echo(f"    Difference\t{result.size_difference}%")
        _print_sizes(result.sizes)

        if options.inspect:
            click.echo(json.dumps(result.report, indent=4))

        click.echo(f"Elapsed: {round(result.elapsed * 1000):,}ms")
        click.secho(f"✓ Success! Merged GLB saved to {output}", fg='green')

    except FileNotFoundError as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        sys.exit(1)
    except ValidationError as e:
        click.secho(f"Invalid options: {e}", fg='red', err=True)
        sys.exit(1)
    except CrowdsmithError as e:
        click.secho(f"Asset Error: {e}", fg='red', err=True)
        sys.exit(1)
    except ValueError as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        sys.exit(1)
    except Exception as e:
        click.secho(f"Unexpected error: {e}", fg='red', err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


@cli.command()
@click.argument('input_path')
@click.option('--json', 'as_json', is_flag=True, help='Print the full report as JSON')
@click.option('--verbose', '-v', is_flag=True, help='Show detailed errors')
def inspect(input_path, as_json, verbose):
    """
    Report mesh, texture and VRAM sizes of a GLB.

    Examples:
        crowdsmith inspect crowd.glb
        crowdsmith inspect crowd.glb --json
    """
    _configure_logging(verbose)
    try:
        report = inspect_document(io.read(input_path))

        if as_json:
            click.echo(json.dumps(report, indent=4))
            return

        data = report["data"]
        click.echo(f"Meshes: {len(data['meshes'])}, Textures: {len(data['textures'])}, "
                   f"Materials: {len(data['materials'])}")
        click.echo("Sizes:")
        _print_sizes(report["sizes"])

    except FileNotFoundError as e:
        click.secho(f"Error: {e}", fg='red', err=True)
        sys.exit(1)
    except CrowdsmithError as e:
        click.secho(f"Asset Error: {e}", fg='red', err=True)
        sys.exit(1)
    except Exception as e:
        click.secho(f"Unexpected error: {e}", fg='red', err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


def main():
    """Entry point for the CLI"""
    cli()


if __name__ == '__main__':
    main()
