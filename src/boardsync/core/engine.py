"""Board engine: the state container a presentation layer drives.

The engine holds the current ``BoardView`` and the drag session. Gestures
come in (directly or through a ``GestureSource``), and the engine resolves
targets, validates, applies moves optimistically, persists them, rolls back on
failure and reloads to converge on server truth. Everything the UI needs to
render is published on the event bus and through the notification sink.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from boardsync.config import BoardSyncConfig
from boardsync.core.batch import BatchOperationManager
from boardsync.core.bus import InMemoryEventBus
from boardsync.core.collision import CollisionResolver
from boardsync.core.errors import NetworkError, NotFoundError, ValidationError
from boardsync.core.events import (
    BatchCompleted,
    BoardReloaded,
    MoveApplied,
    MoveConfirmed,
    MoveRolledBack,
    PhaseChanged,
    SnapshotDiverged,
    ViewChanged,
)
from boardsync.core.executor import MoveExecutor
from boardsync.core.gestures import GestureCancel, GestureEnd, GestureMove, GestureStart
from boardsync.core.models.enums import DragPhase, DropOutcome, NotificationKind, SubjectKind
from boardsync.core.moves import ColumnMove, plan_move
from boardsync.core.notifications import Notification, NullNotificationSink
from boardsync.core.optimistic import OptimisticStateUpdater, RollbackManager
from boardsync.core.session import DragSessionManager
from boardsync.core.validation import MoveValidator, column_stats
from boardsync.core.view import BoardView

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from boardsync.core.batch import BatchResult
    from boardsync.core.collision import Droppable
    from boardsync.core.events import EventBus
    from boardsync.core.geometry import Point, Rect
    from boardsync.core.gestures import GestureEvent, GestureSource
    from boardsync.core.moves import DragSubject, Move
    from boardsync.core.notifications import NotificationSink
    from boardsync.core.optimistic import RollbackPoint
    from boardsync.core.services import BoardService
    from boardsync.core.session import DragSession
    from boardsync.core.validation import ColumnStats

log = logging.getLogger(__name__)

# Failures a mutation can report; each one is rolled back and reloaded.
_MUTATION_ERRORS = (NetworkError, ValidationError, NotFoundError)


@dataclass(frozen=True, slots=True)
class DropResult:
    """How a drop (or other single mutation) settled."""

    outcome: DropOutcome
    move: Move | None = None
    reason: str | None = None

    @property
    def changed(self) -> bool:
        """True when the service accepted a change."""
        return self.outcome is DropOutcome.CONFIRMED


class BoardEngine:
    """Holds ``{view, drag session}`` for one board and runs every operation on it."""

    def __init__(
        self,
        service: BoardService,
        board_id: int,
        *,
        config: BoardSyncConfig | None = None,
        notifications: NotificationSink | None = None,
        event_bus: EventBus | None = None,
        resolver: CollisionResolver | None = None,
        validator: MoveValidator | None = None,
    ) -> None:
        self._config = config or BoardSyncConfig()
        self._service = service
        self._board_id = board_id
        self._notifications = notifications or NullNotificationSink()
        self._bus = event_bus or InMemoryEventBus()
        self._resolver = resolver or CollisionResolver()
        self._validator = validator or MoveValidator(
            enforce_wip_limits=self._config.validation.enforce_wip_limits,
            enforce_allowed_transitions=self._config.validation.enforce_allowed_transitions,
        )
        self._updater = OptimisticStateUpdater(
            verify_invariants=self._config.validation.verify_invariants
        )
        self._rollback = RollbackManager(self._updater)
        self._executor = MoveExecutor(service)
        self._batch = BatchOperationManager(
            self._executor, self._validator, self._updater, self._notifications
        )
        self._sessions = DragSessionManager(
            error_reset_delay=self._config.drag.error_reset_delay,
            on_phase_change=self._on_phase_change,
        )
        self._view: BoardView | None = None
        self._background: set[asyncio.Task[DropResult]] = set()

    # ── state ───────────────────────────────────────────────────────────

    @property
    def board_id(self) -> int:
        return self._board_id

    @property
    def view(self) -> BoardView:
        if self._view is None:
            raise RuntimeError(f"Board {self._board_id} is not loaded; call load() first")
        return self._view

    @property
    def loaded(self) -> bool:
        return self._view is not None

    @property
    def phase(self) -> DragPhase:
        return self._sessions.phase

    @property
    def session(self) -> DragSession | None:
        return self._sessions.session

    @property
    def events(self) -> EventBus:
        return self._bus

    @property
    def in_flight(self) -> frozenset[int]:
        return self._executor.in_flight

    def column_stats(self) -> list[ColumnStats]:
        return column_stats(self.view)

    # ── loading ─────────────────────────────────────────────────────────

    async def load(self) -> BoardView:
        """Fetch the board. NotFoundError and NetworkError propagate."""
        return await self._fetch("load")

    async def reload(self) -> BoardView:
        """Replace the view with the service's current snapshot."""
        return await self._fetch("reload")

    async def _fetch(self, reason: str) -> BoardView:
        snapshot = await self._service.get_board(self._board_id)
        view = BoardView.from_snapshot(snapshot)
        self._set_view(view, reason)
        self._bus.emit(BoardReloaded(self._board_id, len(snapshot.tasks)))
        return view

    async def _reconcile(self, expected: BoardView | None) -> None:
        """Reload after a mutation, trusting the service over the local view."""
        try:
            snapshot = await self._service.get_board(self._board_id)
        except NetworkError as exc:
            log.warning("Reload of board %s failed: %s", self._board_id, exc)
            self._notify(NotificationKind.WARNING, f"Could not refresh the board: {exc.message}")
            return

        fresh = BoardView.from_snapshot(snapshot)
        if expected is not None and fresh.layout() != expected.layout():
            log.info("Board %s differs from the optimistic view; using the reload", self._board_id)
            self._bus.emit(SnapshotDiverged(self._board_id, expected.layout(), fresh.layout()))
        self._set_view(fresh, "reload")
        self._bus.emit(BoardReloaded(self._board_id, len(snapshot.tasks)))

    # ── gestures ────────────────────────────────────────────────────────

    def can_start_drag(self, subject: DragSubject) -> bool:
        if subject.kind is SubjectKind.COLUMN and not self._config.drag.allow_column_drag:
            return False
        return self._sessions.can_start(subject, busy=self._executor.in_flight)

    def start_drag(self, subject: DragSubject) -> DragSession | None:
        """Begin a drag. Returns None when the gesture is refused.

        A gesture is refused while another one is unsettled (dragging,
        dropping or showing an error) and when the task has a mutation in
        flight.
        """
        if not self.can_start_drag(subject):
            log.info("Refusing drag of %s %s while %s", subject.kind, subject.id, self.phase)
            return None
        try:
            return self._sessions.start(self.view, subject, busy=self._executor.in_flight)
        except NotFoundError as exc:
            log.warning("Cannot drag: %s", exc)
            return None

    def update_target(
        self,
        candidates: Sequence[Droppable],
        *,
        pointer: Point | None = None,
        dragged_rect: Rect | None = None,
    ) -> DragSession | None:
        """Resolve the hovered target and its verdict. The view is not changed."""
        session = self._sessions.session
        if self.phase is not DragPhase.DRAGGING or session is None:
            return None

        target = self._resolver.resolve(
            candidates,
            pointer=pointer,
            dragged_rect=dragged_rect,
            subject_kind=session.subject.kind,
        )
        if target is None:
            return self._sessions.update_target(None)
        move = plan_move(self.view, session.subject, target)
        verdict = self._validator.validate(move, self.view) if move is not None else None
        return self._sessions.update_target(target, move=move, verdict=verdict)

    def cancel_drag(self) -> bool:
        """Abandon the current gesture with no effect on the board."""
        cancelled = self._sessions.cancel() is not None
        if cancelled:
            log.debug("Drag cancelled")
        return cancelled

    async def drop(self) -> DropResult:
        """Drop the subject on the current target and settle the move."""
        session = self._sessions.session
        if self.phase is not DragPhase.DRAGGING or session is None:
            return DropResult(DropOutcome.CANCELLED)
        if session.target is None:
            self._sessions.end()
            return DropResult(DropOutcome.CANCELLED)

        # The board may have changed since the last hover; plan against it as it is now.
        move = plan_move(self.view, session.subject, session.target)
        if move is None:
            log.info("Drop target %s is no longer on the board", session.target)
            self._sessions.cancel()
            return DropResult(DropOutcome.CANCELLED)

        verdict = self._validator.validate(move, self.view)
        if not verdict.valid:
            self._sessions.cancel()
            self._notify(NotificationKind.ERROR, verdict.reason or "Move not allowed")
            return DropResult(DropOutcome.REJECTED, move, verdict.reason)

        if move.is_noop:
            self._sessions.cancel()
            return DropResult(DropOutcome.NOOP, move)

        self._sessions.end()
        return await self._commit(move)

    async def _commit(self, move: Move) -> DropResult:
        before = self.view
        after = self._updater.apply(before, move)
        point = self._rollback.capture(move, before, after)
        self._set_view(after, "optimistic")
        self._bus.emit(MoveApplied(move))
        message = self._describe(move, before)

        try:
            await self._executor.execute(move, before)
        except _MUTATION_ERRORS as exc:
            log.warning("Move %r failed: %s", move, exc)
            self._roll_back(point)
            self._bus.emit(MoveRolledBack(move, exc.message))
            self._notify(NotificationKind.ERROR, f"Failed to move {message}: {exc.message}")
            self._sessions.fail()
            if self._config.sync.reload_after_move:
                await self._reconcile(None)
            return DropResult(DropOutcome.ROLLED_BACK, move, exc.message)
        except Exception:
            self._roll_back(point)
            self._sessions.fail()
            raise

        self._bus.emit(MoveConfirmed(move))
        self._notify(NotificationKind.SUCCESS, f"Moved {message}")
        try:
            if self._config.sync.reload_after_move:
                await self._reconcile(self.view)
        finally:
            self._sessions.settle()
        return DropResult(DropOutcome.CONFIRMED, move)

    def _roll_back(self, point: RollbackPoint) -> None:
        try:
            self._set_view(self._rollback.restore(point, self.view), "rollback")
        except Exception:
            # The session must still leave ``dropping``.
            self._sessions.fail()
            raise

    # ── gesture sources ─────────────────────────────────────────────────

    def attach(self, source: GestureSource) -> Callable[[], None]:
        """Consume gestures from ``source``. Returns a detach callable."""
        return source.subscribe(self._on_gesture)

    async def dispatch(self, event: GestureEvent) -> DropResult | None:
        """Apply one gesture event. Only ``GestureEnd`` returns a result."""
        if isinstance(event, GestureEnd):
            return await self.drop()
        self._apply_gesture(event)
        return None

    async def join(self) -> None:
        """Wait for drops started by attached gesture sources."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def _on_gesture(self, event: GestureEvent) -> None:
        if not isinstance(event, GestureEnd):
            self._apply_gesture(event)
            return
        task = asyncio.get_running_loop().create_task(self.drop())
        self._background.add(task)
        task.add_done_callback(self._drop_done)

    def _apply_gesture(self, event: GestureStart | GestureMove | GestureCancel) -> None:
        match event:
            case GestureStart(subject=subject):
                self.start_drag(subject)
            case GestureMove(candidates=candidates, pointer=pointer, dragged_rect=rect):
                self.update_target(candidates, pointer=pointer, dragged_rect=rect)
            case GestureCancel():
                self.cancel_drag()

    def _drop_done(self, task: asyncio.Task[DropResult]) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.error("Drop failed: %s", exc, exc_info=exc)

    # ── other operations ────────────────────────────────────────────────

    async def delete_column(self, column_id: int) -> DropResult:
        """Remove an empty column."""
        view = self.view
        verdict = self._validator.can_delete_column(column_id, view)
        if not verdict.valid:
            self._notify(NotificationKind.ERROR, verdict.reason or "Column cannot be deleted")
            return DropResult(DropOutcome.REJECTED, reason=verdict.reason)

        column = view.column(column_id)
        self._set_view(self._updater.remove_column(view, column_id), "optimistic")
        try:
            await self._executor.delete_column(self._board_id, column_id)
        except _MUTATION_ERRORS as exc:
            log.warning("Deleting column %s failed: %s", column_id, exc)
            self._set_view(view, "rollback")
            self._notify(NotificationKind.ERROR, f"Failed to delete column: {exc.message}")
            if self._config.sync.reload_after_move:
                await self._reconcile(None)
            return DropResult(DropOutcome.ROLLED_BACK, reason=exc.message)

        self._notify(NotificationKind.SUCCESS, f'Column "{column.name}" deleted')
        if self._config.sync.reload_after_move:
            await self._reconcile(self.view)
        return DropResult(DropOutcome.CONFIRMED)

    async def batch_move(self, task_ids: Iterable[int], column_id: int) -> BatchResult:
        """Move each selected task to ``column_id``, one call at a time."""
        result = await self._batch.move(
            self.view, task_ids, column_id, on_progress=self._on_batch_progress
        )
        return await self._finish_batch(result)

    async def batch_delete(self, task_ids: Iterable[int]) -> BatchResult:
        """Delete each selected task, one call at a time."""
        result = await self._batch.delete(
            self.view, task_ids, on_progress=self._on_batch_progress
        )
        return await self._finish_batch(result)

    async def _finish_batch(self, result: BatchResult) -> BatchResult:
        self._bus.emit(BatchCompleted(result))
        if self._config.sync.reload_after_batch:
            await self._reconcile(None)
        return result

    def _on_batch_progress(self, view: BoardView) -> None:
        self._set_view(view, "batch")

    # ── helpers ─────────────────────────────────────────────────────────

    def _set_view(self, view: BoardView, reason: str) -> None:
        if self._config.validation.verify_invariants:
            view.check_invariants()
        self._view = view
        self._bus.emit(ViewChanged(view, reason))

    def _on_phase_change(self, previous: DragPhase, phase: DragPhase) -> None:
        log.debug("Drag phase %s -> %s", previous, phase)
        self._bus.emit(PhaseChanged(previous, phase))

    def _notify(self, kind: NotificationKind, message: str) -> None:
        self._notifications.notify(Notification(kind, message))

    @staticmethod
    def _describe(move: Move, view: BoardView) -> str:
        if isinstance(move, ColumnMove):
            return f'column "{view.column(move.column_id).name}" to position {move.to_index + 1}'
        task = view.task(move.task_id)
        title = task.title if task is not None else f"task {move.task_id}"
        origin = view.column(move.from_column_id)
        if not move.is_cross_column:
            return f'"{title}" within {origin.name}'
        return f'"{title}" from {origin.name} to {view.column(move.to_column_id).name}'
