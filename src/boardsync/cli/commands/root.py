"""Root CLI command registration."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path

import click
from pydantic import ValidationError as PydanticValidationError

from boardsync.config import BoardSyncConfig
from boardsync.version import get_boardsync_version

from .check import check
from .prefs import prefs
from .simulate import simulate


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, is_eager=True, help="Show version and exit")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (defaults to config.toml in the config directory)",
)
@click.pass_context
def cli(ctx: click.Context, version: bool, config_path: Path | None) -> None:
    """Kanban drag-and-drop engine developer tools."""
    if version:
        click.echo(f"boardsync {get_boardsync_version()}")
        ctx.exit(0)

    try:
        config = BoardSyncConfig.load(config_path)
    except (tomllib.TOMLDecodeError, PydanticValidationError) as exc:
        raise click.ClickException(f"Invalid config: {exc}") from exc
    logging.basicConfig(level=config.logging.level, format="%(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj["config"] = config

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(check)
cli.add_command(simulate)
cli.add_command(prefs)
