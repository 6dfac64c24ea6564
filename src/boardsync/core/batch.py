"""Operations over a multi-task selection.

Batches are sequential and not atomic: one service call per task, in selection
order. When call *k* fails, calls 1..k-1 have already taken effect and calls
k+1..n are still attempted. The result reports exactly which tasks failed so
the caller can reload and show the real outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias

from boardsync.core.errors import BoardSyncError, NotFoundError
from boardsync.core.models.enums import BatchAction, NotificationKind
from boardsync.core.moves import TaskMove
from boardsync.core.notifications import Notification, NullNotificationSink

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from boardsync.core.executor import MoveExecutor
    from boardsync.core.notifications import NotificationSink
    from boardsync.core.optimistic import OptimisticStateUpdater
    from boardsync.core.validation import MoveValidator
    from boardsync.core.view import BoardView

log = logging.getLogger(__name__)

ProgressCallback: TypeAlias = "Callable[[BoardView], None]"


@dataclass(frozen=True, slots=True)
class BatchFailure:
    task_id: int
    reason: str


@dataclass(frozen=True, slots=True)
class BatchResult:
    action: BatchAction
    requested: tuple[int, ...]
    succeeded: tuple[int, ...]
    failed: tuple[BatchFailure, ...]

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def partial(self) -> bool:
        return bool(self.succeeded) and bool(self.failed)

    def failed_ids(self) -> tuple[int, ...]:
        return tuple(failure.task_id for failure in self.failed)


class BatchOperationManager:
    """Apply a move or delete to each selected task in turn."""

    def __init__(
        self,
        executor: MoveExecutor,
        validator: MoveValidator,
        updater: OptimisticStateUpdater,
        notifications: NotificationSink | None = None,
    ) -> None:
        self._executor = executor
        self._validator = validator
        self._updater = updater
        self._notifications = notifications or NullNotificationSink()

    async def move(
        self,
        view: BoardView,
        task_ids: Iterable[int],
        column_id: int,
        *,
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        """Move every selected task to the end of ``column_id``.

        Each task is validated against the board as the batch has left it so
        far, so a WIP limit fills up as tasks arrive. Tasks already in the
        column count as moved without a service call.
        """
        column = view.find_column(column_id)
        if column is None:
            raise NotFoundError("column", column_id)

        requested = _dedupe(task_ids)
        projected = view
        succeeded: list[int] = []
        failed: list[BatchFailure] = []

        for task_id in requested:
            location = projected.locate(task_id)
            if location is None:
                failed.append(BatchFailure(task_id, f"Task {task_id} is not on this board"))
                continue
            origin, index = location
            if origin.id == column.id:
                succeeded.append(task_id)
                continue

            move = TaskMove(
                task_id=task_id,
                from_column_id=origin.id,
                from_index=index,
                to_column_id=column.id,
                to_index=len(projected.tasks_in(column.id)),
            )
            verdict = self._validator.can_move_task(move, projected)
            if not verdict.valid:
                failed.append(BatchFailure(task_id, verdict.reason or "Move not allowed"))
                continue

            try:
                await self._executor.set_status(task_id, column.status)
            except BoardSyncError as exc:
                log.warning("Batch move of task %s failed: %s", task_id, exc)
                failed.append(BatchFailure(task_id, exc.message))
                continue

            succeeded.append(task_id)
            projected = self._updater.apply(projected, move)
            if on_progress is not None:
                on_progress(projected)

        result = BatchResult(BatchAction.MOVE, requested, tuple(succeeded), tuple(failed))
        self._report(result, f"moved to {column.name}")
        return result

    async def delete(
        self,
        view: BoardView,
        task_ids: Iterable[int],
        *,
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        """Delete every selected task."""
        requested = _dedupe(task_ids)
        projected = view
        succeeded: list[int] = []
        failed: list[BatchFailure] = []

        for task_id in requested:
            if projected.locate(task_id) is None:
                failed.append(BatchFailure(task_id, f"Task {task_id} is not on this board"))
                continue
            try:
                await self._executor.delete_task(task_id)
            except BoardSyncError as exc:
                log.warning("Batch delete of task %s failed: %s", task_id, exc)
                failed.append(BatchFailure(task_id, exc.message))
                continue

            succeeded.append(task_id)
            projected = self._updater.remove_task(projected, task_id)
            if on_progress is not None:
                on_progress(projected)

        result = BatchResult(BatchAction.DELETE, requested, tuple(succeeded), tuple(failed))
        self._report(result, "deleted")
        return result

    def _report(self, result: BatchResult, done: str) -> None:
        total = len(result.requested)
        count = len(result.succeeded)
        if result.ok:
            kind = NotificationKind.SUCCESS
            message = f"{count} task(s) {done}"
        elif result.succeeded:
            kind = NotificationKind.WARNING
            message = f"{count} of {total} task(s) {done}; {len(result.failed)} failed"
        else:
            kind = NotificationKind.ERROR
            message = f"No tasks {done}; {len(result.failed)} failed"
        log.info("Batch %s: %s", result.action, message)
        self._notifications.notify(Notification(kind, message))


def _dedupe(task_ids: Iterable[int]) -> tuple[int, ...]:
    return tuple(dict.fromkeys(task_ids))
