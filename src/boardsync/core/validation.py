"""Move validation and WIP limit reporting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, NamedTuple

from boardsync.core.models.enums import WipState
from boardsync.core.moves import ColumnDelete, ColumnMove, TaskMove
from boardsync.core.positions import is_dense

if TYPE_CHECKING:
    from boardsync.core.models.entities import BoardSnapshot, Column
    from boardsync.core.moves import Move
    from boardsync.core.view import BoardView


class Verdict(NamedTuple):
    """Result of a validation check. ``reason`` explains a rejection."""

    valid: bool
    reason: str | None = None

    @classmethod
    def ok(cls) -> Verdict:
        return cls(True, None)

    @classmethod
    def reject(cls, reason: str) -> Verdict:
        return cls(False, reason)


class MoveValidator:
    """Decides whether a proposed move is legal on the current board.

    Invalid verdicts are surfaced to the user and never reach the optimistic
    updater or the network.
    """

    def __init__(
        self,
        *,
        enforce_wip_limits: bool = True,
        enforce_allowed_transitions: bool = True,
    ) -> None:
        self._enforce_wip_limits = enforce_wip_limits
        self._enforce_allowed_transitions = enforce_allowed_transitions

    def validate(self, move: Move | ColumnDelete, view: BoardView) -> Verdict:
        """Validate any supported move against ``view``."""
        if isinstance(move, TaskMove):
            return self.can_move_task(move, view)
        if isinstance(move, ColumnMove):
            return self.can_move_column(move, view)
        if isinstance(move, ColumnDelete):
            return self.can_delete_column(move.column_id, view)
        raise TypeError(f"Unsupported move {move!r}")

    def can_move_task(self, move: TaskMove, view: BoardView) -> Verdict:
        """Check a task move.

        Reordering within a column is always allowed. Entering another column
        requires room under its WIP limit and, when the column restricts where
        tasks may come from, an allowed origin status.
        """
        location = view.locate(move.task_id)
        if location is None:
            return Verdict.reject(f"Task {move.task_id} is not on this board")
        origin, _ = location
        target = view.find_column(move.to_column_id)
        if target is None:
            return Verdict.reject(f"Column {move.to_column_id} is not on this board")

        if not move.is_cross_column:
            return Verdict.ok()

        if self._enforce_wip_limits and target.wip_limit is not None:
            if len(view.tasks_in(target.id)) >= target.wip_limit:
                return Verdict.reject(
                    f"Cannot move task: {target.name} is at WIP limit ({target.wip_limit})"
                )

        if self._enforce_allowed_transitions and target.allowed_from is not None:
            if origin.status not in target.allowed_from:
                allowed = ", ".join(sorted(target.allowed_from)) or "nowhere"
                return Verdict.reject(
                    f'Tasks can only be moved to "{target.name}" from: {allowed}'
                )

        return Verdict.ok()

    def can_move_column(self, move: ColumnMove, view: BoardView) -> Verdict:
        """Columns have no capacity constraint; any existing position is valid."""
        if view.find_column(move.column_id) is None:
            return Verdict.reject(f"Column {move.column_id} is not on this board")
        if not 0 <= move.to_index < len(view.columns):
            return Verdict.reject(f"Position {move.to_index + 1} does not exist on this board")
        return Verdict.ok()

    def can_delete_column(self, column_id: int, view: BoardView) -> Verdict:
        """Columns must be emptied before removal."""
        if view.find_column(column_id) is None:
            return Verdict.reject(f"Column {column_id} is not on this board")
        count = len(view.tasks_in(column_id))
        if count:
            return Verdict.reject(
                f"Cannot delete column because it contains {count} tasks. "
                "Move or delete tasks first."
            )
        return Verdict.ok()


@dataclass(frozen=True, slots=True)
class WipStatus:
    column_id: int
    state: WipState
    count: int
    limit: int | None
    message: str

    @property
    def is_at_limit(self) -> bool:
        return self.state in (WipState.AT, WipState.OVER)


def wip_status(view: BoardView, column_id: int) -> WipStatus:
    """Report how full a column is relative to its WIP limit."""
    column = view.column(column_id)
    count = len(view.tasks_in(column_id))
    limit = column.wip_limit
    if limit is None:
        return WipStatus(column_id, WipState.NONE, count, None, "No WIP limit set")

    if count > limit:
        state = WipState.OVER
    elif count == limit:
        state = WipState.AT
    else:
        state = WipState.UNDER
    return WipStatus(
        column_id, state, count, limit, f"Column is {state.value} WIP limit ({count}/{limit})"
    )


@dataclass(frozen=True, slots=True)
class ColumnStats:
    column: Column
    task_count: int
    points: int
    wip: WipStatus

    @property
    def is_over_capacity(self) -> bool:
        return self.wip.state is WipState.OVER


def column_stats(view: BoardView) -> list[ColumnStats]:
    """Per-column task counts, point totals and WIP status in display order."""
    stats = []
    for column in view.columns:
        tasks = view.tasks_in(column.id)
        stats.append(
            ColumnStats(
                column=column,
                task_count=len(tasks),
                points=sum(task.points or 0 for task in tasks),
                wip=wip_status(view, column.id),
            )
        )
    return stats


def audit_snapshot(snapshot: BoardSnapshot) -> list[str]:
    """List every way raw service data breaks the board invariants.

    ``BoardView.from_snapshot`` repairs all of these; this reports them so
    bad backend data can be spotted before it is silently normalized.
    """
    problems: list[str] = []
    columns = snapshot.board.columns
    if not is_dense(column.order for column in columns):
        orders = sorted(column.order for column in columns)
        problems.append(f"Column orders {orders} are not 1..{len(columns)}")

    by_status: dict[str, list[int | None]] = {column.status: [] for column in columns}
    for task in snapshot.tasks:
        if task.status not in by_status:
            problems.append(f"Task {task.id} has status {task.status!r} with no matching column")
            continue
        by_status[task.status].append(task.board_position)

    for column in columns:
        positions = by_status[column.status]
        if not is_dense(positions):
            shown = ["-" if p is None else str(p) for p in positions]
            problems.append(f"Positions in column {column.name!r} are not dense: {', '.join(shown)}")
    return problems
