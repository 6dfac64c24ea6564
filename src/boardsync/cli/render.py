"""Rich rendering shared by CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape
from rich.table import Table

from boardsync.core.models.enums import NotificationKind, WipState
from boardsync.core.validation import column_stats

if TYPE_CHECKING:
    from boardsync.core.models.entities import Task
    from boardsync.core.notifications import Notification
    from boardsync.core.view import BoardView

_KIND_STYLE = {
    NotificationKind.SUCCESS: "green",
    NotificationKind.INFO: "cyan",
    NotificationKind.WARNING: "yellow",
    NotificationKind.ERROR: "red",
}

_WIP_STYLE = {
    WipState.NONE: "dim",
    WipState.UNDER: "green",
    WipState.AT: "yellow",
    WipState.OVER: "red",
}


def board_table(view: BoardView) -> Table:
    table = Table(title=f"{escape(view.name)} (board {view.board_id})")
    table.add_column("#", justify="right")
    table.add_column("Column")
    table.add_column("Status")
    table.add_column("WIP")
    table.add_column("Tasks")

    for stats in column_stats(view):
        column = stats.column
        tasks = ", ".join(_task_cell(task) for task in view.tasks_in(column.id))
        wip = f"[{_WIP_STYLE[stats.wip.state]}]{stats.wip.message}[/]"
        table.add_row(
            str(column.order),
            escape(column.name),
            escape(column.status),
            wip,
            tasks or "[dim]-[/]",
        )
    return table


def notification_line(notification: Notification) -> str:
    style = _KIND_STYLE[notification.kind]
    return f"[{style}]{notification.kind.value:>7}[/] {escape(notification.message)}"


def _task_cell(task: Task) -> str:
    return f"{task.board_position}:{escape(task.title)} [dim](#{task.id} {task.priority_label})[/]"
