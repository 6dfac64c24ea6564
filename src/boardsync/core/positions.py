"""Dense ordering for tasks within a column and columns within a board.

All functions are pure: they take sequences of frozen models and return new
tuples. Positions are 1-based and always renumbered densely from 1, so any gap
or duplicate in the input is repaired by the first operation that touches a
column.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from boardsync.core.models.entities import Column, Task


def task_sort_key(task: Task) -> tuple[int, int, int]:
    """Order by ``board_position`` then ``id``; tasks without a position sort last."""
    if task.board_position is None:
        return (1, 0, task.id)
    return (0, task.board_position, task.id)


def column_sort_key(column: Column) -> tuple[int, int]:
    return (column.order, column.id)


def order_tasks(tasks: Iterable[Task]) -> list[Task]:
    """Re-derive column order from persisted data."""
    return sorted(tasks, key=task_sort_key)


def order_columns(columns: Iterable[Column]) -> list[Column]:
    return sorted(columns, key=column_sort_key)


T = TypeVar("T")


def array_move(items: Sequence[T], from_index: int, to_index: int) -> list[T]:
    """Remove the item at ``from_index`` and reinsert it at ``to_index``.

    This is move semantics, not swap: everything between the two indices
    shifts by one.
    """
    if not 0 <= from_index < len(items):
        raise IndexError(f"from_index {from_index} out of range for {len(items)} items")
    if not 0 <= to_index < len(items):
        raise IndexError(f"to_index {to_index} out of range for {len(items)} items")
    result = list(items)
    result.insert(to_index, result.pop(from_index))
    return result


def renumber_tasks(tasks: Iterable[Task], *, status: str | None = None) -> tuple[Task, ...]:
    """Assign ``board_position = index + 1`` (and optionally a status) in sequence order."""
    renumbered: list[Task] = []
    for index, task in enumerate(tasks):
        update: dict[str, object] = {}
        if task.board_position != index + 1:
            update["board_position"] = index + 1
        if status is not None and task.status != status:
            update["status"] = status
        renumbered.append(task.model_copy(update=update) if update else task)
    return tuple(renumbered)


def renumber_columns(columns: Iterable[Column]) -> tuple[Column, ...]:
    """Assign ``order = index + 1`` in sequence order."""
    return tuple(
        column if column.order == index + 1 else column.model_copy(update={"order": index + 1})
        for index, column in enumerate(columns)
    )


def reorder_within_column(
    tasks: Sequence[Task], from_index: int, to_index: int
) -> tuple[Task, ...]:
    """Move one task inside its column and renumber the column."""
    return renumber_tasks(array_move(tasks, from_index, to_index))


def move_between_columns(
    origin: Sequence[Task],
    target: Sequence[Task],
    from_index: int,
    to_index: int,
    *,
    status: str,
) -> tuple[tuple[Task, ...], tuple[Task, ...]]:
    """Take a task out of ``origin`` and insert it into ``target`` at ``to_index``.

    The origin closes its gap and the target opens one; both are then
    renumbered from 1. ``to_index`` past the end appends. The moved task takes
    the target column's ``status``.

    Returns:
        ``(new_origin, new_target)``
    """
    if not 0 <= from_index < len(origin):
        raise IndexError(f"from_index {from_index} out of range for {len(origin)} tasks")
    remaining = list(origin)
    subject = remaining.pop(from_index).model_copy(update={"status": status})
    receiving = list(target)
    receiving.insert(max(0, min(to_index, len(receiving))), subject)
    return renumber_tasks(remaining), renumber_tasks(receiving)


def reorder_columns(columns: Sequence[Column], from_index: int, to_index: int) -> tuple[Column, ...]:
    """Move one column and renumber ``order`` densely from 1."""
    return renumber_columns(array_move(columns, from_index, to_index))


def is_dense(values: Iterable[int | None]) -> bool:
    """True when ``values`` is exactly ``{1..n}`` with no gaps or duplicates."""
    collected = list(values)
    if any(value is None for value in collected):
        return False
    return sorted(collected) == list(range(1, len(collected) + 1))  # type: ignore[type-var]
