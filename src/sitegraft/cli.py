"""CLI entry point for sitegraft."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click

from sitegraft import __version__


@click.group()
@click.version_option(version=__version__, prog_name="sitegraft")
def main() -> None:
    """Sitegraft: turn a hierarchical HTML page export into a documentation site."""
    pass


@main.command()
@click.argument(
    "input_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.argument("output_dir", type=click.Path(file_okay=False, path_type=Path))
@click.option(
    "-c",
    "--config",
    "config_path",
    default=None,
    help="Path to a YAML config file (default: built-in settings)",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose (DEBUG) logging",
)
def build(input_dir: Path, output_dir: Path, config_path: str | None, verbose: bool) -> None:
    """Build a site from INPUT_DIR into OUTPUT_DIR (output is recreated)."""
    from sitegraft.builder import run_build
    from sitegraft.config import load_config
    from sitegraft.container import Container

    try:
        config = load_config(config_path)
    except Exception as e:
        click.echo(f"Error loading config: {e}", err=True)
        sys.exit(1)

    _setup_logging(verbose, config.log_level)
    container = Container.create_default(config)

    try:
        result = asyncio.run(run_build(container, input_dir, output_dir))
    except Exception as e:
        click.echo(f"Build failed: {e}", err=True)
        sys.exit(1)

    click.echo(f"Built {result.page_count} page(s) into {result.output_root}")


def _setup_logging(verbose: bool, level_name: str = "INFO") -> None:
    """Configure logging for a build run."""
    level = logging.DEBUG if verbose else getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )
