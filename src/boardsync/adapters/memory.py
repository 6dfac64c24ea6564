"""In-memory board service.

Behaves like the real backend: positions stay dense, a status change appends
the task to its new column, WIP limits and non-empty column deletes are
rejected. Failures can be injected per operation, which is how the simulator
and the tests exercise rollback.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict, deque
from typing import TYPE_CHECKING, Any

from boardsync.core.errors import BoardSyncError, NetworkError, NotFoundError, ValidationError
from boardsync.core.models.entities import Board, BoardSnapshot, Task
from boardsync.core.positions import (
    array_move,
    order_columns,
    order_tasks,
    renumber_columns,
    task_sort_key,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from boardsync.core.models.entities import Column, ColumnOrder

log = logging.getLogger(__name__)

OPERATIONS = frozenset(
    {
        "get_board",
        "update_task_status",
        "update_task",
        "reorder_columns",
        "delete_task",
        "delete_column",
    }
)

_UPDATABLE_FIELDS = frozenset(
    {"title", "board_position", "priority", "due_date", "assignee", "points"}
)


class InMemoryBoardService:
    """A ``BoardService`` backed by dictionaries."""

    def __init__(self, snapshots: Iterable[BoardSnapshot] = (), *, latency: float = 0.0) -> None:
        self._latency = latency
        self._boards: dict[int, Board] = {}
        self._tasks: dict[int, Task] = {}
        self._task_board: dict[int, int] = {}
        self._queued: dict[str, deque[BoardSyncError]] = defaultdict(deque)
        self._targeted: dict[tuple[str, int], BoardSyncError] = {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        for snapshot in snapshots:
            self.add_board(snapshot)

    # ── setup ───────────────────────────────────────────────────────────

    def add_board(self, snapshot: BoardSnapshot) -> None:
        board = snapshot.board
        self._boards[board.id] = board.model_copy(
            update={"columns": renumber_columns(order_columns(board.columns))}
        )
        for task in snapshot.tasks:
            self._tasks[task.id] = task
            self._task_board[task.id] = board.id
        for column in board.columns:
            self._renumber(board.id, column.status)

    def snapshot(self, board_id: int) -> BoardSnapshot:
        """Current state of a board, without recording a call."""
        board = self._board(board_id)
        rank = {column.status: index for index, column in enumerate(board.columns)}
        tasks = sorted(
            (task for task_id, task in self._tasks.items() if self._task_board[task_id] == board_id),
            key=lambda task: (rank.get(task.status, len(rank)), task_sort_key(task)),
        )
        return BoardSnapshot(board=board, tasks=tuple(tasks))

    def fail_next(
        self, operation: str, error: BoardSyncError | None = None, *, times: int = 1
    ) -> None:
        """Make the next ``times`` calls of ``operation`` raise ``error``."""
        self._check_operation(operation)
        for _ in range(times):
            self._queued[operation].append(error or _simulated(operation))

    def fail_on(self, operation: str, key: int, error: BoardSyncError | None = None) -> None:
        """Make every call of ``operation`` for ``key`` (task or board id) raise."""
        self._check_operation(operation)
        self._targeted[(operation, key)] = error or _simulated(operation)

    def clear_failures(self) -> None:
        self._queued.clear()
        self._targeted.clear()

    def calls_to(self, operation: str) -> list[tuple[Any, ...]]:
        return [args for name, args in self.calls if name == operation]

    @property
    def mutation_count(self) -> int:
        return sum(1 for name, _ in self.calls if name != "get_board")

    # ── BoardService ────────────────────────────────────────────────────

    async def get_board(self, board_id: int) -> BoardSnapshot:
        await self._enter("get_board", board_id)
        return self.snapshot(board_id)

    async def update_task_status(self, task_id: int, status: str) -> Task:
        await self._enter("update_task_status", task_id, status)
        task = self._task(task_id)
        board_id = self._task_board[task_id]
        column = self._column_for_status(board_id, status)
        if task.status == status:
            return task

        count = len(self._column_tasks(board_id, status))
        if column.wip_limit is not None and count >= column.wip_limit:
            raise ValidationError(
                f"Cannot move task: {column.name} is at WIP limit ({column.wip_limit})"
            )

        previous = task.status
        self._tasks[task_id] = task.model_copy(
            update={"status": status, "board_position": count + 1}
        )
        self._renumber(board_id, previous)
        return self._tasks[task_id]

    async def update_task(self, task_id: int, changes: Mapping[str, Any]) -> Task:
        await self._enter("update_task", task_id, dict(changes))
        task = self._task(task_id)
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        fields = {key: value for key, value in changes.items() if key != "board_position"}
        if fields:
            task = Task.model_validate({**task.model_dump(), **fields})
            self._tasks[task_id] = task

        if "board_position" in changes:
            self._place(task, int(changes["board_position"]))
        return self._tasks[task_id]

    async def reorder_columns(self, board_id: int, orders: Sequence[ColumnOrder]) -> None:
        await self._enter("reorder_columns", board_id, tuple(orders))
        board = self._board(board_id)
        by_id = {column.id: column for column in board.columns}
        requested = {order.column_id: order.new_order for order in orders}
        if set(requested) != set(by_id):
            raise ValidationError("Column reorder must list every column on the board")
        if sorted(requested.values()) != list(range(1, len(by_id) + 1)):
            raise ValidationError("Column orders must be 1..N without gaps")

        columns = [
            by_id[column_id].model_copy(update={"order": new})
            for column_id, new in requested.items()
        ]
        self._boards[board_id] = board.model_copy(update={"columns": tuple(order_columns(columns))})

    async def delete_task(self, task_id: int) -> None:
        await self._enter("delete_task", task_id)
        task = self._task(task_id)
        board_id = self._task_board.pop(task_id)
        del self._tasks[task_id]
        self._renumber(board_id, task.status)

    async def delete_column(self, board_id: int, column_id: int) -> None:
        await self._enter("delete_column", board_id, column_id)
        board = self._board(board_id)
        column = next((c for c in board.columns if c.id == column_id), None)
        if column is None:
            raise NotFoundError("column", column_id)
        count = len(self._column_tasks(board_id, column.status))
        if count:
            raise ValidationError(
                f"Cannot delete column because it contains {count} tasks. "
                "Move or delete tasks first."
            )
        remaining = [c for c in board.columns if c.id != column_id]
        self._boards[board_id] = board.model_copy(update={"columns": renumber_columns(remaining)})

    # ── internals ───────────────────────────────────────────────────────

    async def _enter(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, args))
        if self._latency:
            await asyncio.sleep(self._latency)
        error = self._targeted.get((operation, args[0])) if args else None
        if error is None and self._queued[operation]:
            error = self._queued[operation].popleft()
        if error is not None:
            log.debug("Injected failure in %s%r: %s", operation, args, error)
            raise error

    def _check_operation(self, operation: str) -> None:
        if operation not in OPERATIONS:
            raise ValueError(f"Unknown operation {operation!r}; expected one of {sorted(OPERATIONS)}")

    def _board(self, board_id: int) -> Board:
        board = self._boards.get(board_id)
        if board is None:
            raise NotFoundError("board", board_id)
        return board

    def _task(self, task_id: int) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    def _column_for_status(self, board_id: int, status: str) -> Column:
        for column in self._board(board_id).columns:
            if column.status == status:
                return column
        raise ValidationError(f"Status {status!r} does not exist on board {board_id}")

    def _column_tasks(self, board_id: int, status: str) -> list[Task]:
        return order_tasks(
            task
            for task_id, task in self._tasks.items()
            if self._task_board[task_id] == board_id and task.status == status
        )

    def _renumber(self, board_id: int, status: str) -> None:
        for index, task in enumerate(self._column_tasks(board_id, status)):
            if task.board_position != index + 1:
                self._tasks[task.id] = task.model_copy(update={"board_position": index + 1})

    def _place(self, task: Task, position: int) -> None:
        board_id = self._task_board[task.id]
        tasks = self._column_tasks(board_id, task.status)
        current = next(i for i, t in enumerate(tasks) if t.id == task.id)
        target = max(0, min(position - 1, len(tasks) - 1))
        for index, placed in enumerate(array_move(tasks, current, target)):
            self._tasks[placed.id] = placed.model_copy(update={"board_position": index + 1})


def _simulated(operation: str) -> NetworkError:
    return NetworkError(f"Simulated failure in {operation}")
