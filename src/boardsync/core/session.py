"""Drag session lifecycle.

Phases run ``idle -> dragging -> dropping -> idle`` on the happy path. A drop
with no resolved target goes straight back from ``dragging`` to ``idle``. A
failed mutation passes through ``error``, which always resets itself to
``idle`` after a short delay.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, TypeAlias

from boardsync.core.errors import NotFoundError, SessionBusyError
from boardsync.core.models.enums import DragPhase, SubjectKind
from boardsync.limits import ERROR_RESET_DELAY

if TYPE_CHECKING:
    from collections.abc import Callable, Collection

    from boardsync.core.collision import DropTarget
    from boardsync.core.moves import DragSubject, Move
    from boardsync.core.validation import Verdict
    from boardsync.core.view import BoardView

log = logging.getLogger(__name__)

PhaseListener: TypeAlias = "Callable[[DragPhase, DragPhase], None]"

_TRANSITIONS: dict[DragPhase, frozenset[DragPhase]] = {
    DragPhase.IDLE: frozenset({DragPhase.DRAGGING}),
    DragPhase.DRAGGING: frozenset({DragPhase.IDLE, DragPhase.DROPPING}),
    DragPhase.DROPPING: frozenset({DragPhase.IDLE, DragPhase.ERROR}),
    DragPhase.ERROR: frozenset({DragPhase.IDLE}),
}


@dataclass
class DragSession:
    """State of the one gesture in progress.

    For a column subject ``origin_column_id`` is the column itself and
    ``origin_index`` its place among the board's columns.
    """

    subject: DragSubject
    origin_column_id: int
    origin_index: int
    target: DropTarget | None = None
    move: Move | None = None
    verdict: Verdict | None = None
    started_at: datetime = field(default_factory=datetime.now)

    @property
    def is_valid(self) -> bool:
        return self.verdict is not None and self.verdict.valid


class DragSessionManager:
    """Owns the single drag session and its phase."""

    def __init__(
        self,
        *,
        error_reset_delay: float = ERROR_RESET_DELAY,
        on_phase_change: PhaseListener | None = None,
    ) -> None:
        self._error_reset_delay = error_reset_delay
        self._on_phase_change = on_phase_change
        self._phase = DragPhase.IDLE
        self._session: DragSession | None = None
        self._reset_handle: asyncio.TimerHandle | None = None

    @property
    def phase(self) -> DragPhase:
        return self._phase

    @property
    def session(self) -> DragSession | None:
        return self._session

    def can_start(self, subject: DragSubject, *, busy: Collection[int] = ()) -> bool:
        """A gesture may start only from ``idle`` and never on a task still in flight."""
        if self._phase is not DragPhase.IDLE:
            return False
        return not (subject.kind is SubjectKind.TASK and subject.id in busy)

    def start(
        self, view: BoardView, subject: DragSubject, *, busy: Collection[int] = ()
    ) -> DragSession:
        """Begin a gesture, capturing the subject's origin.

        Raises:
            SessionBusyError: A gesture is unsettled or the task is in flight.
            NotFoundError: The subject is not on the board.
        """
        if not self.can_start(subject, busy=busy):
            raise SessionBusyError(
                f"Cannot start dragging {subject.kind} {subject.id} while {self._phase}"
            )

        if subject.kind is SubjectKind.TASK:
            location = view.locate(subject.id)
            if location is None:
                raise NotFoundError("task", subject.id)
            origin_column, origin_index = location
            session = DragSession(subject, origin_column.id, origin_index)
        else:
            if view.find_column(subject.id) is None:
                raise NotFoundError("column", subject.id)
            session = DragSession(subject, subject.id, view.column_index(subject.id))

        self._session = session
        self._transition(DragPhase.DRAGGING)
        log.debug("Drag started: %s %s", subject.kind, subject.id)
        return session

    def update_target(
        self,
        target: DropTarget | None,
        *,
        move: Move | None = None,
        verdict: Verdict | None = None,
    ) -> DragSession | None:
        """Record the hovered target. Board state is not touched."""
        if self._phase is not DragPhase.DRAGGING or self._session is None:
            log.debug("Ignoring target update while %s", self._phase)
            return None
        self._session.target = target
        self._session.move = move
        self._session.verdict = verdict
        return self._session

    def end(self) -> DragSession | None:
        """Finish the gesture.

        With a resolved target the session enters ``dropping`` and is returned.
        Without one the gesture is a no-op cancellation: back to ``idle`` and
        None is returned.
        """
        if self._phase is not DragPhase.DRAGGING or self._session is None:
            return None
        if self._session.target is None:
            log.debug("Drop outside any target; cancelling")
            self._discard(DragPhase.IDLE)
            return None
        self._transition(DragPhase.DROPPING)
        return self._session

    def cancel(self) -> DragSession | None:
        """Abandon a gesture that has not been dropped yet."""
        if self._phase is not DragPhase.DRAGGING:
            return None
        session = self._session
        self._discard(DragPhase.IDLE)
        return session

    def settle(self) -> None:
        """The dropped move finished; return to ``idle``."""
        if self._phase is DragPhase.DROPPING:
            self._discard(DragPhase.IDLE)

    def fail(self) -> None:
        """The dropped move failed; show ``error`` briefly, then reset."""
        if self._phase is not DragPhase.DROPPING:
            return
        self._discard(DragPhase.ERROR)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is None or self._error_reset_delay <= 0:
            self.reset()
            return
        self._reset_handle = loop.call_later(self._error_reset_delay, self.reset)

    def reset(self) -> None:
        """Force ``idle`` from any phase, discarding the session."""
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None
        self._session = None
        if self._phase is not DragPhase.IDLE:
            self._set_phase(DragPhase.IDLE)

    def _discard(self, phase: DragPhase) -> None:
        self._session = None
        self._transition(phase)

    def _transition(self, phase: DragPhase) -> None:
        if phase not in _TRANSITIONS[self._phase]:
            raise RuntimeError(f"Illegal drag phase transition {self._phase} -> {phase}")
        self._set_phase(phase)

    def _set_phase(self, phase: DragPhase) -> None:
        previous, self._phase = self._phase, phase
        if self._on_phase_change is not None:
            self._on_phase_change(previous, phase)
