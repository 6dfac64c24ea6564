"""Immutable view model of one board.

A ``BoardView`` is what the presentation layer renders: columns in display
order, each with its tasks in position order. Views are never mutated; every
update returns a new instance, so the previous one can serve as a rollback
point.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from boardsync.core.errors import ConsistencyError
from boardsync.core.models.entities import Board, BoardSnapshot
from boardsync.core.positions import (
    is_dense,
    order_columns,
    order_tasks,
    renumber_columns,
    renumber_tasks,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from boardsync.core.models.entities import Column, Task

log = logging.getLogger(__name__)


@dataclass(frozen=True, eq=True)
class BoardView:
    board_id: int
    name: str
    columns: tuple[Column, ...]
    tasks_by_column: Mapping[int, tuple[Task, ...]] = field(default_factory=dict)

    # Compared by value but never hashed: ``tasks_by_column`` is a dict.
    __hash__ = None  # type: ignore[assignment]

    @classmethod
    def from_snapshot(cls, snapshot: BoardSnapshot) -> BoardView:
        """Group and order a service snapshot, normalizing positions densely.

        Column order is re-derived from ``order`` (then id) and task order from
        ``board_position`` (then id). A task whose status matches no column is
        shown in the first column and takes that column's status.
        """
        columns = renumber_columns(order_columns(snapshot.board.columns))
        by_status = {column.status: column for column in columns}
        grouped: dict[int, list[Task]] = {column.id: [] for column in columns}

        for task in snapshot.tasks:
            column = by_status.get(task.status)
            if column is None:
                if not columns:
                    raise ConsistencyError(
                        f"Board {snapshot.board.id} has tasks but no columns to hold them"
                    )
                column = columns[0]
                log.warning(
                    "Task %s has status %r with no matching column; showing it in %r",
                    task.id,
                    task.status,
                    column.name,
                )
            grouped[column.id].append(task)

        tasks_by_column = {
            column.id: renumber_tasks(order_tasks(grouped[column.id]), status=column.status)
            for column in columns
        }
        return cls(
            board_id=snapshot.board.id,
            name=snapshot.board.name,
            columns=columns,
            tasks_by_column=tasks_by_column,
        )

    def to_snapshot(self) -> BoardSnapshot:
        return BoardSnapshot(
            board=Board(id=self.board_id, name=self.name, columns=self.columns),
            tasks=tuple(self.all_tasks()),
        )

    # ── lookups ─────────────────────────────────────────────────────────

    def find_column(self, column_id: int) -> Column | None:
        for column in self.columns:
            if column.id == column_id:
                return column
        return None

    def column(self, column_id: int) -> Column:
        column = self.find_column(column_id)
        if column is None:
            raise KeyError(f"Column {column_id} is not on board {self.board_id}")
        return column

    def column_for_status(self, status: str) -> Column | None:
        for column in self.columns:
            if column.status == status:
                return column
        return None

    def column_index(self, column_id: int) -> int:
        for index, column in enumerate(self.columns):
            if column.id == column_id:
                return index
        raise KeyError(f"Column {column_id} is not on board {self.board_id}")

    def tasks_in(self, column_id: int) -> tuple[Task, ...]:
        return self.tasks_by_column.get(column_id, ())

    def locate(self, task_id: int) -> tuple[Column, int] | None:
        """Return the column holding ``task_id`` and the task's index in it."""
        for column in self.columns:
            for index, task in enumerate(self.tasks_in(column.id)):
                if task.id == task_id:
                    return column, index
        return None

    def task(self, task_id: int) -> Task | None:
        location = self.locate(task_id)
        if location is None:
            return None
        column, index = location
        return self.tasks_in(column.id)[index]

    def all_tasks(self) -> list[Task]:
        return [task for column in self.columns for task in self.tasks_in(column.id)]

    @property
    def task_ids(self) -> frozenset[int]:
        return frozenset(task.id for task in self.all_tasks())

    def layout(self) -> tuple[tuple[int, str, tuple[int, ...]], ...]:
        """Column ids, statuses and task id sequences; used to compare views."""
        return tuple(
            (column.id, column.status, tuple(task.id for task in self.tasks_in(column.id)))
            for column in self.columns
        )

    # ── updates ─────────────────────────────────────────────────────────

    def with_columns(self, columns: Iterable[Column]) -> BoardView:
        columns = tuple(columns)
        tasks = {column.id: self.tasks_in(column.id) for column in columns}
        return BoardView(self.board_id, self.name, columns, tasks)

    def with_tasks(self, updates: Mapping[int, tuple[Task, ...]]) -> BoardView:
        tasks = dict(self.tasks_by_column)
        tasks.update(updates)
        return BoardView(self.board_id, self.name, self.columns, tasks)

    # ── invariants ──────────────────────────────────────────────────────

    def check_invariants(self) -> None:
        """Raise ConsistencyError unless positions, statuses and orders are sound."""
        if not is_dense(column.order for column in self.columns):
            raise ConsistencyError(f"Column orders on board {self.board_id} are not dense")

        statuses = [column.status for column in self.columns]
        if len(statuses) != len(set(statuses)):
            raise ConsistencyError(f"Board {self.board_id} repeats a column status")

        column_ids = {column.id for column in self.columns}
        stray = set(self.tasks_by_column) - column_ids
        if stray:
            raise ConsistencyError(f"Tasks grouped under unknown columns {sorted(stray)}")

        seen: set[int] = set()
        for column in self.columns:
            tasks = self.tasks_in(column.id)
            if not is_dense(task.board_position for task in tasks):
                raise ConsistencyError(f"Positions in column {column.name!r} are not dense")
            for task in tasks:
                if task.status != column.status:
                    raise ConsistencyError(
                        f"Task {task.id} has status {task.status!r} "
                        f"but sits in column {column.name!r}"
                    )
                if task.id in seen:
                    raise ConsistencyError(f"Task {task.id} appears in more than one column")
                seen.add(task.id)
