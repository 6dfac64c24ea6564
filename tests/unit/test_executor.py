"""Unit tests for MoveExecutor service calls."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, call

import pytest

from boardsync.core.errors import NetworkError
from boardsync.core.executor import MoveExecutor
from boardsync.core.models.entities import ColumnOrder
from boardsync.core.moves import ColumnMove, TaskMove
from boardsync.core.view import BoardView

pytestmark = pytest.mark.unit


@pytest.fixture
def board_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def executor(board_service: AsyncMock) -> MoveExecutor:
    return MoveExecutor(board_service)


class TestExecute:
    async def test_reorder_sends_position_only(
        self, executor: MoveExecutor, board_service: AsyncMock, view: BoardView
    ):
        await executor.execute(TaskMove(3, 10, 2, 10, 0), view)

        board_service.update_task.assert_awaited_once_with(3, {"board_position": 1})
        board_service.update_task_status.assert_not_awaited()

    async def test_append_to_other_column_sends_status_only(
        self, executor: MoveExecutor, board_service: AsyncMock, view: BoardView
    ):
        await executor.execute(TaskMove(1, 10, 0, 30, 1), view)

        board_service.update_task_status.assert_awaited_once_with(1, "Done")
        board_service.update_task.assert_not_awaited()

    async def test_insert_into_other_column_sends_status_then_position(
        self, executor: MoveExecutor, board_service: AsyncMock, view: BoardView
    ):
        await executor.execute(TaskMove(1, 10, 0, 30, 0), view)

        assert board_service.mock_calls == [
            call.update_task_status(1, "Done"),
            call.update_task(1, {"board_position": 1}),
        ]

    async def test_column_move_sends_full_order(
        self, executor: MoveExecutor, board_service: AsyncMock, view: BoardView
    ):
        await executor.execute(ColumnMove(30, 2, 0), view)

        board_service.reorder_columns.assert_awaited_once_with(
            1,
            [
                ColumnOrder(column_id=30, new_order=1),
                ColumnOrder(column_id=10, new_order=2),
                ColumnOrder(column_id=20, new_order=3),
                ColumnOrder(column_id=40, new_order=4),
            ],
        )

    async def test_failure_propagates(
        self, executor: MoveExecutor, board_service: AsyncMock, view: BoardView
    ):
        board_service.update_task_status.side_effect = NetworkError("offline")

        with pytest.raises(NetworkError):
            await executor.execute(TaskMove(1, 10, 0, 30, 0), view)
        board_service.update_task.assert_not_awaited()
        assert executor.in_flight == frozenset()


class TestInFlight:
    async def test_task_is_busy_while_its_call_runs(
        self, executor: MoveExecutor, board_service: AsyncMock, view: BoardView
    ):
        seen: list[bool] = []

        async def record(task_id: int, status: str) -> None:
            seen.append(executor.is_busy(task_id))

        board_service.update_task_status.side_effect = record
        await executor.execute(TaskMove(1, 10, 0, 30, 1), view)

        assert seen == [True]
        assert not executor.is_busy(1)

    async def test_calls_for_one_task_are_serialized(
        self, executor: MoveExecutor, board_service: AsyncMock
    ):
        release = asyncio.Event()
        order: list[str] = []

        async def slow_delete(task_id: int) -> None:
            order.append("delete:start")
            await release.wait()
            order.append("delete:end")

        async def status(task_id: int, value: str) -> None:
            order.append("status")

        board_service.delete_task.side_effect = slow_delete
        board_service.update_task_status.side_effect = status

        first = asyncio.create_task(executor.delete_task(7))
        await asyncio.sleep(0)
        second = asyncio.create_task(executor.set_status(7, "Done"))
        await asyncio.sleep(0)
        assert order == ["delete:start"]

        release.set()
        await asyncio.gather(first, second)
        assert order == ["delete:start", "delete:end", "status"]

    async def test_other_tasks_are_not_blocked(
        self, executor: MoveExecutor, board_service: AsyncMock
    ):
        release = asyncio.Event()

        async def slow_delete(task_id: int) -> None:
            await release.wait()

        board_service.delete_task.side_effect = slow_delete
        pending = asyncio.create_task(executor.delete_task(7))
        await asyncio.sleep(0)

        await executor.set_status(8, "Done")
        assert executor.in_flight == frozenset({7})

        release.set()
        await pending
