"""Replay board operations against an in-memory service."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import click
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.markup import escape

from boardsync.adapters.memory import OPERATIONS, InMemoryBoardService
from boardsync.cli.loading import load_snapshot
from boardsync.cli.render import board_table, notification_line
from boardsync.cli.script import (
    BatchDeleteStep,
    BatchMoveStep,
    DeleteColumnStep,
    MoveColumnStep,
    MoveStep,
    parse_script,
)
from boardsync.config import BoardSyncConfig
from boardsync.core.collision import Droppable, DropTarget
from boardsync.core.engine import BoardEngine
from boardsync.core.errors import NotFoundError
from boardsync.core.moves import DragSubject
from boardsync.core.notifications import NotificationLog
from boardsync.debug_log import recent_entries, setup_debug_logging

if TYPE_CHECKING:
    from boardsync.cli.script import Step
    from boardsync.core.models.entities import BoardSnapshot
    from boardsync.core.view import BoardView


def drop_slot(view: BoardView, column_id: int, index: int | None) -> DropTarget:
    """The drop target that lands a task at ``index`` of ``column_id``."""
    tasks = view.tasks_in(column_id)
    if index is not None and index < len(tasks):
        return DropTarget.task(tasks[index].id, column_id)
    return DropTarget.column(column_id)


async def run_step(engine: BoardEngine, step: Step) -> str:
    """Run one scripted step and describe how it ended."""
    match step:
        case MoveStep(task=task_id, column=column_id, index=index):
            if engine.start_drag(DragSubject.task(task_id)) is None:
                return "refused"
            engine.update_target([Droppable(drop_slot(engine.view, column_id, index))])
            result = await engine.drop()
            return _describe(result.outcome.value, result.reason)
        case MoveColumnStep(column=column_id, index=index):
            columns = engine.view.columns
            if index >= len(columns):
                return f"rejected: no column at position {index + 1}"
            if engine.start_drag(DragSubject.column(column_id)) is None:
                return "refused"
            engine.update_target([Droppable(DropTarget.column(columns[index].id))])
            result = await engine.drop()
            return _describe(result.outcome.value, result.reason)
        case DeleteColumnStep(column=column_id):
            result = await engine.delete_column(column_id)
            return _describe(result.outcome.value, result.reason)
        case BatchMoveStep(tasks=task_ids, column=column_id):
            batch = await engine.batch_move(task_ids, column_id)
            return f"{len(batch.succeeded)}/{len(batch.requested)} moved"
        case BatchDeleteStep(tasks=task_ids):
            batch = await engine.batch_delete(task_ids)
            return f"{len(batch.succeeded)}/{len(batch.requested)} deleted"
    raise TypeError(f"Unsupported step {step!r}")


def _describe(outcome: str, reason: str | None) -> str:
    return f"{outcome}: {reason}" if reason else outcome


async def simulate_script(
    snapshot: BoardSnapshot,
    steps: list[Step],
    *,
    failures: tuple[str, ...] = (),
    config: BoardSyncConfig | None = None,
) -> tuple[BoardEngine, NotificationLog, list[str]]:
    """Load ``snapshot`` into a fresh in-memory service and run ``steps`` in order."""
    service = InMemoryBoardService([snapshot])
    for failure in failures:
        operation, _, key = failure.partition(":")
        if key:
            service.fail_on(operation, int(key))
        else:
            service.fail_next(operation)

    notifications = NotificationLog()
    engine = BoardEngine(service, snapshot.board.id, config=config, notifications=notifications)
    await engine.load()
    outcomes = []
    for number, step in enumerate(steps, start=1):
        outcomes.append(f"{number}. {step.op}: {await run_step(engine, step)}")
    return engine, notifications, outcomes


@click.command()
@click.argument("board_json", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("script_json", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--fail",
    "failures",
    multiple=True,
    metavar="OP[:ID]",
    help=f"Make the next OP call fail (or every call for ID). OP is one of: {', '.join(sorted(OPERATIONS))}",
)
@click.option("--debug", is_flag=True, help="Print engine debug log after the run")
@click.pass_context
def simulate(
    ctx: click.Context,
    board_json: Path,
    script_json: Path,
    failures: tuple[str, ...],
    debug: bool,
) -> None:
    """Replay SCRIPT_JSON operations on the board in BOARD_JSON.

    \b
    Script steps:
        {"op": "move", "task": 3, "column": 2, "index": 0}
        {"op": "move_column", "column": 3, "index": 0}
        {"op": "delete_column", "column": 4}
        {"op": "batch_move", "tasks": [1, 2], "column": 3}
        {"op": "batch_delete", "tasks": [5]}
    """
    for failure in failures:
        operation, _, key = failure.partition(":")
        if operation not in OPERATIONS:
            raise click.BadParameter(f"unknown operation {operation!r}", param_hint="--fail")
        if key and not key.isdigit():
            raise click.BadParameter(f"{key!r} is not an id", param_hint="--fail")

    snapshot = load_snapshot(board_json)
    try:
        steps = parse_script(script_json.read_text(encoding="utf-8"))
    except PydanticValidationError as exc:
        raise click.ClickException(f"{script_json}: invalid script\n{exc}") from exc

    config: BoardSyncConfig = ctx.obj["config"] if ctx.obj else BoardSyncConfig()
    # Steps run back to back, so a failed drop must not hold the error phase.
    config.drag.error_reset_delay = 0

    if debug:
        setup_debug_logging(logging.DEBUG)

    try:
        engine, notifications, outcomes = asyncio.run(
            simulate_script(snapshot, steps, failures=failures, config=config)
        )
    except NotFoundError as exc:
        raise click.ClickException(exc.message) from exc

    console = Console()
    for line in outcomes:
        console.print(escape(line), highlight=False)
    if notifications.entries:
        console.print()
        for notification in notifications.entries:
            console.print(notification_line(notification), highlight=False)
    console.print()
    console.print(board_table(engine.view))

    if debug:
        console.print()
        for entry in recent_entries():
            console.print(f"[dim]{entry.level:<7}[/] {escape(entry.message)}", highlight=False)
