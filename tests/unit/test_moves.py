"""Unit tests for turning drop targets into moves."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from boardsync.core.collision import DropTarget
from boardsync.core.moves import ColumnMove, DragSubject, TaskMove, plan_move

if TYPE_CHECKING:
    from boardsync.core.view import BoardView

pytestmark = pytest.mark.unit


class TestPlanTaskMove:
    def test_drop_on_task_in_other_column_inserts_at_its_index(self, view: BoardView):
        move = plan_move(view, DragSubject.task(2), DropTarget.task(5, 30))
        assert move == TaskMove(2, 10, 1, 30, 0)
        assert move.is_cross_column

    def test_drop_on_other_column_appends(self, view: BoardView):
        move = plan_move(view, DragSubject.task(1), DropTarget.column(20))
        assert move == TaskMove(1, 10, 0, 20, 1)

    def test_drop_on_own_column_moves_to_end(self, view: BoardView):
        move = plan_move(view, DragSubject.task(1), DropTarget.column(10))
        assert move == TaskMove(1, 10, 0, 10, 2)

    def test_drop_on_itself_is_noop(self, view: BoardView):
        move = plan_move(view, DragSubject.task(2), DropTarget.task(2, 10))
        assert move is not None
        assert move.is_noop

    def test_unknown_subject_or_target(self, view: BoardView):
        assert plan_move(view, DragSubject.task(99), DropTarget.column(10)) is None
        assert plan_move(view, DragSubject.task(1), DropTarget.task(99, 10)) is None
        assert plan_move(view, DragSubject.task(1), DropTarget.column(99)) is None

    def test_inverse(self):
        move = TaskMove(3, 10, 2, 30, 0)
        assert move.inverse() == TaskMove(3, 30, 0, 10, 2)
        assert move.inverse().inverse() == move


class TestPlanColumnMove:
    def test_drop_on_column(self, view: BoardView):
        assert plan_move(view, DragSubject.column(30), DropTarget.column(10)) == ColumnMove(
            30, 2, 0
        )

    def test_drop_on_task_targets_its_column(self, view: BoardView):
        assert plan_move(view, DragSubject.column(10), DropTarget.task(5, 30)) == ColumnMove(
            10, 0, 2
        )

    def test_unknown_column(self, view: BoardView):
        assert plan_move(view, DragSubject.column(99), DropTarget.column(10)) is None

    def test_inverse(self):
        assert ColumnMove(30, 2, 0).inverse() == ColumnMove(30, 0, 2)
