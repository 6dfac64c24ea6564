"""Board data check command."""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from boardsync.cli.loading import load_snapshot
from boardsync.cli.render import board_table
from boardsync.core.errors import ConsistencyError
from boardsync.core.validation import audit_snapshot
from boardsync.core.view import BoardView


@click.command()
@click.argument("board_json", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def check(ctx: click.Context, board_json: Path) -> None:
    """Check a board snapshot for ordering problems.

    Prints the normalized board with WIP status and lists every raw-data
    problem. Exits with status 1 when there is any.
    """
    console = Console()
    snapshot = load_snapshot(board_json)
    problems = audit_snapshot(snapshot)

    try:
        console.print(board_table(BoardView.from_snapshot(snapshot)))
    except ConsistencyError as exc:
        problems.append(exc.message)

    if not problems:
        console.print("[green]Board data is consistent[/]")
        return
    for problem in problems:
        console.print(f"[red]x[/] {escape(problem)}", highlight=False)
    ctx.exit(1)
