"""Proposed board mutations and how a drop target turns into one."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias

from boardsync.core.models.enums import SubjectKind

if TYPE_CHECKING:
    from boardsync.core.collision import DropTarget
    from boardsync.core.view import BoardView


@dataclass(frozen=True, slots=True)
class DragSubject:
    """The thing being dragged: a task or a column."""

    kind: SubjectKind
    id: int

    @classmethod
    def task(cls, task_id: int) -> DragSubject:
        return cls(SubjectKind.TASK, task_id)

    @classmethod
    def column(cls, column_id: int) -> DragSubject:
        return cls(SubjectKind.COLUMN, column_id)


@dataclass(frozen=True, slots=True)
class TaskMove:
    """Move a task to ``to_index`` of ``to_column_id`` (indices are 0-based)."""

    task_id: int
    from_column_id: int
    from_index: int
    to_column_id: int
    to_index: int

    @property
    def is_cross_column(self) -> bool:
        return self.from_column_id != self.to_column_id

    @property
    def is_noop(self) -> bool:
        return not self.is_cross_column and self.from_index == self.to_index

    def inverse(self) -> TaskMove:
        return TaskMove(
            task_id=self.task_id,
            from_column_id=self.to_column_id,
            from_index=self.to_index,
            to_column_id=self.from_column_id,
            to_index=self.from_index,
        )


@dataclass(frozen=True, slots=True)
class ColumnMove:
    """Move a column to ``to_index`` in the board's column sequence."""

    column_id: int
    from_index: int
    to_index: int

    @property
    def is_noop(self) -> bool:
        return self.from_index == self.to_index

    def inverse(self) -> ColumnMove:
        return ColumnMove(self.column_id, self.to_index, self.from_index)


@dataclass(frozen=True, slots=True)
class ColumnDelete:
    column_id: int


Move: TypeAlias = TaskMove | ColumnMove


def plan_move(view: BoardView, subject: DragSubject, target: DropTarget) -> Move | None:
    """Translate "subject dropped on target" into a concrete move.

    Dropping a task on another task inserts it at that task's index; dropping
    it on a column appends it (or, within its own column, moves it to the
    end). Dropping a column on a task targets the task's column. Returns None
    when subject or target are no longer on the board.
    """
    if subject.kind is SubjectKind.COLUMN:
        return _plan_column_move(view, subject.id, target)
    return _plan_task_move(view, subject.id, target)


def _plan_task_move(view: BoardView, task_id: int, target: DropTarget) -> TaskMove | None:
    origin = view.locate(task_id)
    if origin is None:
        return None
    origin_column, from_index = origin

    if target.kind is SubjectKind.TASK:
        located = view.locate(target.id)
        if located is None:
            return None
        to_column, to_index = located
    else:
        to_column = view.find_column(target.id)
        if to_column is None:
            return None
        count = len(view.tasks_in(to_column.id))
        to_index = count - 1 if to_column.id == origin_column.id else count

    return TaskMove(
        task_id=task_id,
        from_column_id=origin_column.id,
        from_index=from_index,
        to_column_id=to_column.id,
        to_index=to_index,
    )


def _plan_column_move(view: BoardView, column_id: int, target: DropTarget) -> ColumnMove | None:
    if view.find_column(column_id) is None or view.find_column(target.column_id) is None:
        return None
    return ColumnMove(
        column_id=column_id,
        from_index=view.column_index(column_id),
        to_index=view.column_index(target.column_id),
    )
