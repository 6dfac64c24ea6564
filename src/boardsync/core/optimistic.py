"""Optimistic view updates and their rollback.

The updater applies a validated move to the view synchronously, before the
service has confirmed anything. The rollback manager remembers what the view
looked like before, so a failed mutation can be undone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from boardsync.core.moves import ColumnMove, TaskMove
from boardsync.core.positions import (
    move_between_columns,
    renumber_columns,
    renumber_tasks,
    reorder_columns,
    reorder_within_column,
)

if TYPE_CHECKING:
    from boardsync.core.moves import Move
    from boardsync.core.view import BoardView

log = logging.getLogger(__name__)


class OptimisticStateUpdater:
    """Produce the post-move view without waiting for the network."""

    def __init__(self, *, verify_invariants: bool = False) -> None:
        self._verify = verify_invariants

    def apply(self, view: BoardView, move: Move) -> BoardView:
        if isinstance(move, ColumnMove):
            updated = self._apply_column_move(view, move)
        else:
            updated = self._apply_task_move(view, move)
        if self._verify:
            updated.check_invariants()
        return updated

    def remove_task(self, view: BoardView, task_id: int) -> BoardView:
        """Drop a task from the view, closing the gap it leaves."""
        location = view.locate(task_id)
        if location is None:
            return view
        column, index = location
        remaining = [task for i, task in enumerate(view.tasks_in(column.id)) if i != index]
        return view.with_tasks({column.id: renumber_tasks(remaining)})

    def remove_column(self, view: BoardView, column_id: int) -> BoardView:
        """Drop an (empty) column and renumber the rest."""
        columns = [column for column in view.columns if column.id != column_id]
        return view.with_columns(renumber_columns(columns))

    def _apply_task_move(self, view: BoardView, move: TaskMove) -> BoardView:
        origin = view.tasks_in(move.from_column_id)
        if not move.is_cross_column:
            if move.is_noop:
                return view
            return view.with_tasks(
                {move.from_column_id: reorder_within_column(origin, move.from_index, move.to_index)}
            )

        target_column = view.column(move.to_column_id)
        new_origin, new_target = move_between_columns(
            origin,
            view.tasks_in(move.to_column_id),
            move.from_index,
            move.to_index,
            status=target_column.status,
        )
        return view.with_tasks({move.from_column_id: new_origin, move.to_column_id: new_target})

    def _apply_column_move(self, view: BoardView, move: ColumnMove) -> BoardView:
        if move.is_noop:
            return view
        return view.with_columns(reorder_columns(view.columns, move.from_index, move.to_index))


@dataclass(frozen=True, slots=True)
class RollbackPoint:
    """The view before and after one optimistic move."""

    move: Move
    before: BoardView
    after: BoardView


class RollbackManager:
    """Undo optimistic moves whose mutation failed."""

    def __init__(self, updater: OptimisticStateUpdater) -> None:
        self._updater = updater

    def capture(self, move: Move, before: BoardView, after: BoardView) -> RollbackPoint:
        return RollbackPoint(move, before, after)

    def restore(self, point: RollbackPoint, current: BoardView) -> BoardView:
        """Return the view with ``point``'s move undone.

        If nothing changed since the move, this is simply the pre-drop view.
        If other moves landed in the meantime, only this move is inverted so
        theirs survive. When the subject has itself moved on, or the slot it
        came from no longer exists (a batch emptied the column, say), the
        pre-drop view is the best guess and the follow-up reload fixes the rest.
        """
        if current == point.after:
            return point.before

        if not self._subject_at(current, point.move):
            log.info("Subject of %r has moved since; restoring the pre-drop view", point.move)
            return point.before

        inverse = point.move.inverse()
        if not self._fits(current, inverse):
            log.info("Slot %r came from is gone; restoring the pre-drop view", point.move)
            return point.before

        log.debug("Inverting %r on a view that moved on", point.move)
        return self._updater.apply(current, inverse)

    @staticmethod
    def _subject_at(view: BoardView, move: Move) -> bool:
        if isinstance(move, ColumnMove):
            try:
                return view.column_index(move.column_id) == move.to_index
            except KeyError:
                return False
        location = view.locate(move.task_id)
        if location is None:
            return False
        column, index = location
        return column.id == move.to_column_id and index == move.to_index

    @staticmethod
    def _fits(view: BoardView, inverse: Move) -> bool:
        """True when the destination slot of ``inverse`` still exists in ``view``."""
        if isinstance(inverse, ColumnMove):
            return inverse.to_index < len(view.columns)
        if view.find_column(inverse.to_column_id) is None:
            return False
        if inverse.is_cross_column:
            # Inserting into another column clamps to its end.
            return True
        return inverse.to_index < len(view.tasks_in(inverse.to_column_id))
