"""Persist moves through the board service.

Mutations for one task are strictly ordered: each task id has its own lock,
and the ids currently being written are exposed as ``in_flight`` so the
engine can refuse a new gesture on them. Mutations for different tasks may
overlap and complete in any order.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from boardsync.core.models.entities import ColumnOrder
from boardsync.core.moves import ColumnMove
from boardsync.core.positions import reorder_columns

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable

    from boardsync.core.models.entities import Task
    from boardsync.core.moves import Move, TaskMove
    from boardsync.core.services import BoardService
    from boardsync.core.view import BoardView

log = logging.getLogger(__name__)


class MoveExecutor:
    """Issues the mutating calls for moves, deletes and status changes."""

    def __init__(self, service: BoardService) -> None:
        self._service = service
        self._locks: dict[int, asyncio.Lock] = {}
        self._in_flight: set[int] = set()

    @property
    def in_flight(self) -> frozenset[int]:
        return frozenset(self._in_flight)

    def is_busy(self, task_id: int) -> bool:
        return task_id in self._in_flight

    @asynccontextmanager
    async def guard(self, task_ids: Iterable[int]) -> AsyncIterator[None]:
        """Hold the locks for ``task_ids`` and mark them in flight."""
        ids = sorted(set(task_ids))
        locks = [self._locks.setdefault(task_id, asyncio.Lock()) for task_id in ids]
        self._in_flight.update(ids)
        acquired: list[asyncio.Lock] = []
        try:
            for lock in locks:
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            self._in_flight.difference_update(ids)

    async def execute(self, move: Move, view: BoardView) -> None:
        """Persist ``move``. ``view`` is the board as it was before the move."""
        if isinstance(move, ColumnMove):
            await self._execute_column_move(move, view)
            return
        async with self.guard([move.task_id]):
            await self._execute_task_move(move, view)

    async def set_status(self, task_id: int, status: str) -> Task:
        async with self.guard([task_id]):
            log.debug("Setting task %s status to %r", task_id, status)
            return await self._service.update_task_status(task_id, status)

    async def delete_task(self, task_id: int) -> None:
        async with self.guard([task_id]):
            log.debug("Deleting task %s", task_id)
            await self._service.delete_task(task_id)

    async def delete_column(self, board_id: int, column_id: int) -> None:
        log.debug("Deleting column %s from board %s", column_id, board_id)
        await self._service.delete_column(board_id, column_id)

    async def _execute_task_move(self, move: TaskMove, view: BoardView) -> None:
        position = move.to_index + 1
        if not move.is_cross_column:
            log.debug("Reordering task %s to position %s", move.task_id, position)
            await self._service.update_task(move.task_id, {"board_position": position})
            return

        target = view.column(move.to_column_id)
        log.debug("Moving task %s to %r", move.task_id, target.status)
        await self._service.update_task_status(move.task_id, target.status)
        # The service appends on a status change; only an insert needs a position.
        if move.to_index < len(view.tasks_in(target.id)):
            await self._service.update_task(move.task_id, {"board_position": position})

    async def _execute_column_move(self, move: ColumnMove, view: BoardView) -> None:
        columns = reorder_columns(view.columns, move.from_index, move.to_index)
        orders = [ColumnOrder(column_id=column.id, new_order=column.order) for column in columns]
        log.debug("Reordering columns on board %s: %s", view.board_id, orders)
        await self._service.reorder_columns(view.board_id, orders)
