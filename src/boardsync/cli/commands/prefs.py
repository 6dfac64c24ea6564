"""Column preference commands."""

from __future__ import annotations

import asyncio
import tomllib
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.markup import escape

from boardsync.core.preferences import TomlPreferenceStore


def parse_value(raw: str) -> Any:
    """Read ``raw`` as a TOML value, falling back to a plain string."""
    try:
        return tomllib.loads(f"value = {raw}")["value"]
    except tomllib.TOMLDecodeError:
        return raw


def _store(path: Path | None) -> TomlPreferenceStore:
    return TomlPreferenceStore(path)


_file_option = click.option(
    "--file",
    "path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Preference file (defaults to preferences.toml in the config directory)",
)


@click.group()
def prefs() -> None:
    """Read and write per-column display preferences."""


@prefs.command("get")
@click.argument("board_id", type=int)
@click.argument("column_id", type=int)
@_file_option
def get_cmd(board_id: int, column_id: int, path: Path | None) -> None:
    """Show the preferences of one column."""
    values = asyncio.run(_store(path).get(board_id, column_id))
    console = Console()
    if not values:
        console.print("[dim]No preferences set[/]")
        return
    for key, value in sorted(values.items()):
        console.print(f"{escape(key)} = {escape(repr(value))}", highlight=False)


@prefs.command("set")
@click.argument("board_id", type=int)
@click.argument("column_id", type=int)
@click.argument("pairs", nargs=-1, required=True, metavar="KEY=VALUE...")
@_file_option
def set_cmd(board_id: int, column_id: int, pairs: tuple[str, ...], path: Path | None) -> None:
    """Set one or more preferences of a column."""
    values: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"{pair!r} is not KEY=VALUE", param_hint="KEY=VALUE")
        values[key.strip()] = parse_value(raw.strip())

    store = _store(path)
    asyncio.run(store.set(board_id, column_id, values))
    click.echo(f"Saved {len(values)} preference(s) to {store.path}")
