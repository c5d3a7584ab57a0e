"""CLI entry-point for awsls."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console

from awsls import __version__
from awsls.aws import AccountIdentityError
from awsls.config import (
    DEFAULT_ATTRIBUTES,
    DEFAULT_OUTPUT_DIR,
    ProfileDiscoveryError,
    Settings,
    resolve_profiles,
)
from awsls.core import export_resource_type
from awsls.pool import PoolBuildError, build_pool

console = Console()
err_console = Console(stderr=True)


def _configure_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )
    # Quieten noisy libraries
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _split_csv(ctx: click.Context, param: click.Parameter, value: tuple[str, ...]) -> list[str]:
    items: list[str] = []
    for chunk in value:
        items.extend(part.strip() for part in chunk.split(",") if part.strip())
    return items


def _fail(message: str) -> NoReturn:
    err_console.print(f"[red bold]Error:[/red bold] {message}")
    sys.exit(1)


@click.command()
@click.argument("pattern", default="aws_instance")
@click.option("--debug", is_flag=True, help="Enable debug logging.")
@click.option(
    "--profiles", "-p", multiple=True, callback=_split_csv,
    help="Comma-separated list of named AWS profiles for accounts to list resources in.",
)
@click.option("--all-profiles", is_flag=True, help="List resources for all profiles in ~/.aws/config.")
@click.option(
    "--regions", "-r", multiple=True, callback=_split_csv,
    help="Comma-separated list of regions to list resources in.",
)
@click.option(
    "--attributes", "-a", multiple=True, callback=_split_csv,
    help=f"Comma-separated list of attributes to export (default: {','.join(DEFAULT_ATTRIBUTES)}).",
)
@click.option("--output", "-o", "output_dir", default=DEFAULT_OUTPUT_DIR, help="Output directory.")
@click.version_option(version=__version__, prog_name="awsls")
@click.pass_context
def main(
    ctx: click.Context,
    pattern: str,
    debug: bool,
    profiles: list[str],
    all_profiles: bool,
    regions: list[str],
    attributes: list[str],
    output_dir: str,
) -> None:
    """List AWS resources of the types matching PATTERN into CSV files.

    PATTERN is a glob over supported Terraform resource types
    (e.g. aws_instance, 'aws_iam_*'). One file is written per type to
    OUTPUT/<type>.csv.
    """
    settings = Settings(
        profiles=profiles,
        all_profiles=all_profiles,
        regions=regions,
        output_dir=output_dir,
        debug=debug,
    )
    _configure_logging(settings.debug)
    if attributes:
        settings.attributes = attributes

    try:
        requested_profiles = resolve_profiles(settings)
    except ValueError as exc:
        err_console.print(f"[red bold]Error:[/red bold] {exc}")
        click.echo(ctx.get_help(), err=True)
        sys.exit(1)
    except ProfileDiscoveryError as exc:
        _fail(str(exc))

    try:
        pool = build_pool(requested_profiles, settings)
    except PoolBuildError as exc:
        _fail(str(exc))

    with pool:
        try:
            written = export_resource_type(
                pattern, settings.attributes, pool, Path(settings.output_dir)
            )
        except AccountIdentityError as exc:
            _fail(str(exc))

    for path in written:
        console.print(f"printed csv file into [green]{path}[/green]")


if __name__ == "__main__":
    main()
