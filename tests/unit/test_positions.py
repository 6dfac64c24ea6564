"""Unit tests for dense position arithmetic."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from boardsync.core.models.entities import Column, Task
from boardsync.core.positions import (
    array_move,
    is_dense,
    move_between_columns,
    order_tasks,
    renumber_tasks,
    reorder_columns,
    reorder_within_column,
)
from tests.strategies import column_tasks

pytestmark = pytest.mark.unit


def _tasks(*ids: int, status: str = "To Do") -> list[Task]:
    return [
        Task(id=task_id, title=f"T{task_id}", status=status, board_position=index + 1)
        for index, task_id in enumerate(ids)
    ]


class TestArrayMove:
    def test_move_shifts_items_between_indices(self):
        assert array_move(["a", "b", "c", "d"], 0, 2) == ["b", "c", "a", "d"]
        assert array_move(["a", "b", "c", "d"], 3, 1) == ["a", "d", "b", "c"]

    def test_same_index_is_identity(self):
        assert array_move([1, 2, 3], 1, 1) == [1, 2, 3]

    def test_input_is_not_mutated(self):
        items = [1, 2, 3]
        array_move(items, 0, 2)
        assert items == [1, 2, 3]

    @pytest.mark.parametrize(("from_index", "to_index"), [(-1, 0), (3, 0), (0, 3)])
    def test_out_of_range_raises(self, from_index: int, to_index: int):
        with pytest.raises(IndexError):
            array_move([1, 2, 3], from_index, to_index)


class TestReorderWithinColumn:
    def test_drag_last_task_to_top(self):
        """Moving T3 to index 0 yields [T3, T1, T2] renumbered 1..3."""
        result = reorder_within_column(_tasks(1, 2, 3), 2, 0)

        assert [task.id for task in result] == [3, 1, 2]
        assert [task.board_position for task in result] == [1, 2, 3]

    def test_untouched_tasks_keep_identity(self):
        tasks = _tasks(1, 2, 3)
        result = reorder_within_column(tasks, 1, 2)
        assert result[0] is tasks[0]

    @given(st.data())
    def test_result_is_dense_permutation(self, data: st.DataObject):
        tasks = data.draw(column_tasks(min_size=1))
        from_index = data.draw(st.integers(0, len(tasks) - 1))
        to_index = data.draw(st.integers(0, len(tasks) - 1))

        result = reorder_within_column(tasks, from_index, to_index)

        assert sorted(task.id for task in result) == sorted(task.id for task in tasks)
        assert is_dense(task.board_position for task in result)
        assert result[to_index].id == tasks[from_index].id


class TestMoveBetweenColumns:
    def test_insert_closes_origin_gap_and_opens_target_slot(self):
        origin, target = move_between_columns(
            _tasks(1, 2, 3), _tasks(4, 5, status="Done"), 0, 1, status="Done"
        )

        assert [(t.id, t.board_position) for t in origin] == [(2, 1), (3, 2)]
        assert [(t.id, t.board_position) for t in target] == [(4, 1), (1, 2), (5, 3)]
        assert target[1].status == "Done"

    def test_index_past_end_appends(self):
        _, target = move_between_columns(_tasks(1), _tasks(4, status="Done"), 0, 99, status="Done")
        assert [task.id for task in target] == [4, 1]

    def test_into_empty_column(self):
        origin, target = move_between_columns(_tasks(1), [], 0, 0, status="Blocked")
        assert origin == ()
        assert [(t.id, t.status, t.board_position) for t in target] == [(1, "Blocked", 1)]

    def test_bad_origin_index_raises(self):
        with pytest.raises(IndexError):
            move_between_columns(_tasks(1), [], 1, 0, status="Done")

    @given(st.data())
    def test_tasks_are_conserved_and_both_columns_dense(self, data: st.DataObject):
        origin = data.draw(column_tasks(min_size=1, status="A"))
        target = data.draw(column_tasks(status="B", first_id=1000))
        from_index = data.draw(st.integers(0, len(origin) - 1))
        to_index = data.draw(st.integers(0, len(target)))

        new_origin, new_target = move_between_columns(
            origin, target, from_index, to_index, status="B"
        )

        assert len(new_origin) + len(new_target) == len(origin) + len(target)
        assert is_dense(task.board_position for task in new_origin)
        assert is_dense(task.board_position for task in new_target)
        assert all(task.status == "B" for task in new_target)
        assert new_target[to_index].id == origin[from_index].id


class TestReorderColumns:
    def test_drag_third_column_to_front(self):
        columns = [
            Column(id=1, name="A", status="a", order=1),
            Column(id=2, name="B", status="b", order=2),
            Column(id=3, name="C", status="c", order=3),
        ]

        result = reorder_columns(columns, 2, 0)

        assert [(c.name, c.order) for c in result] == [("C", 1), ("A", 2), ("B", 3)]


class TestOrderingHelpers:
    def test_tasks_without_position_sort_last_then_by_id(self):
        tasks = [
            Task(id=7, title="a", status="s"),
            Task(id=3, title="b", status="s", board_position=2),
            Task(id=5, title="c", status="s", board_position=2),
            Task(id=2, title="d", status="s"),
            Task(id=9, title="e", status="s", board_position=1),
        ]
        assert [task.id for task in order_tasks(tasks)] == [9, 3, 5, 2, 7]

    def test_renumber_assigns_status(self):
        result = renumber_tasks(_tasks(1, 2), status="Done")
        assert [(t.status, t.board_position) for t in result] == [("Done", 1), ("Done", 2)]

    @given(column_tasks())
    def test_renumber_is_idempotent(self, tasks: list[Task]):
        once = renumber_tasks(tasks)
        assert renumber_tasks(once) == once

    @pytest.mark.parametrize(
        ("values", "expected"),
        [
            ([], True),
            ([1, 2, 3], True),
            ([3, 1, 2], True),
            ([1, 3], False),
            ([1, 1, 2], False),
            ([0, 1], False),
            ([1, None], False),
        ],
    )
    def test_is_dense(self, values: list[int | None], expected: bool):
        assert is_dense(values) is expected
