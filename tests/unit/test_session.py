"""Unit tests for the drag session state machine."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from boardsync.core.collision import DropTarget
from boardsync.core.errors import NotFoundError, SessionBusyError
from boardsync.core.models.enums import DragPhase
from boardsync.core.moves import DragSubject
from boardsync.core.session import DragSessionManager
from boardsync.core.validation import Verdict

if TYPE_CHECKING:
    from boardsync.core.view import BoardView

pytestmark = pytest.mark.unit


@pytest.fixture
def phases() -> list[tuple[DragPhase, DragPhase]]:
    return []


@pytest.fixture
def manager(phases: list[tuple[DragPhase, DragPhase]]) -> DragSessionManager:
    return DragSessionManager(
        error_reset_delay=0, on_phase_change=lambda old, new: phases.append((old, new))
    )


def _drop_ready(manager: DragSessionManager, view: BoardView) -> None:
    manager.start(view, DragSubject.task(1))
    manager.update_target(DropTarget.column(30), verdict=Verdict.ok())
    manager.end()


class TestStart:
    def test_captures_task_origin(self, manager: DragSessionManager, view: BoardView):
        session = manager.start(view, DragSubject.task(3))

        assert manager.phase is DragPhase.DRAGGING
        assert (session.origin_column_id, session.origin_index) == (10, 2)
        assert session.target is None

    def test_captures_column_origin(self, manager: DragSessionManager, view: BoardView):
        session = manager.start(view, DragSubject.column(30))
        assert (session.origin_column_id, session.origin_index) == (30, 2)

    def test_second_gesture_is_refused(self, manager: DragSessionManager, view: BoardView):
        manager.start(view, DragSubject.task(1))

        assert not manager.can_start(DragSubject.task(2))
        with pytest.raises(SessionBusyError):
            manager.start(view, DragSubject.task(2))

    def test_task_in_flight_is_refused(self, manager: DragSessionManager, view: BoardView):
        assert not manager.can_start(DragSubject.task(1), busy={1})
        assert manager.can_start(DragSubject.task(2), busy={1})
        with pytest.raises(SessionBusyError):
            manager.start(view, DragSubject.task(1), busy={1})

    def test_unknown_subject(self, manager: DragSessionManager, view: BoardView):
        with pytest.raises(NotFoundError):
            manager.start(view, DragSubject.task(99))
        with pytest.raises(NotFoundError):
            manager.start(view, DragSubject.column(99))
        assert manager.phase is DragPhase.IDLE


class TestLifecycle:
    def test_happy_path(
        self,
        manager: DragSessionManager,
        view: BoardView,
        phases: list[tuple[DragPhase, DragPhase]],
    ):
        _drop_ready(manager, view)
        assert manager.phase is DragPhase.DROPPING
        manager.settle()

        assert manager.phase is DragPhase.IDLE
        assert manager.session is None
        assert phases == [
            (DragPhase.IDLE, DragPhase.DRAGGING),
            (DragPhase.DRAGGING, DragPhase.DROPPING),
            (DragPhase.DROPPING, DragPhase.IDLE),
        ]

    def test_end_without_target_cancels(self, manager: DragSessionManager, view: BoardView):
        manager.start(view, DragSubject.task(1))

        assert manager.end() is None
        assert manager.phase is DragPhase.IDLE

    def test_update_target_records_verdict(self, manager: DragSessionManager, view: BoardView):
        manager.start(view, DragSubject.task(1))
        session = manager.update_target(DropTarget.column(20), verdict=Verdict.reject("full"))

        assert session is not None
        assert session.target == DropTarget.column(20)
        assert not session.is_valid

    def test_update_target_ignored_when_idle(self, manager: DragSessionManager):
        assert manager.update_target(DropTarget.column(20)) is None

    def test_cancel_only_while_dragging(self, manager: DragSessionManager, view: BoardView):
        assert manager.cancel() is None
        manager.start(view, DragSubject.task(1))
        cancelled = manager.cancel()

        assert cancelled is not None
        assert cancelled.subject == DragSubject.task(1)
        assert manager.phase is DragPhase.IDLE

    def test_settle_outside_dropping_is_ignored(self, manager: DragSessionManager):
        manager.settle()
        manager.fail()
        assert manager.phase is DragPhase.IDLE


class TestErrorPhase:
    def test_fail_without_delay_resets_immediately(
        self,
        manager: DragSessionManager,
        view: BoardView,
        phases: list[tuple[DragPhase, DragPhase]],
    ):
        _drop_ready(manager, view)
        manager.fail()

        assert manager.phase is DragPhase.IDLE
        assert phases[-2:] == [
            (DragPhase.DROPPING, DragPhase.ERROR),
            (DragPhase.ERROR, DragPhase.IDLE),
        ]

    async def test_error_clears_after_delay(self, view: BoardView):
        manager = DragSessionManager(error_reset_delay=0.01)
        _drop_ready(manager, view)
        manager.fail()

        assert manager.phase is DragPhase.ERROR
        assert not manager.can_start(DragSubject.task(2))
        await asyncio.sleep(0.05)
        assert manager.phase is DragPhase.IDLE

    async def test_reset_cancels_pending_timer(self, view: BoardView):
        manager = DragSessionManager(error_reset_delay=10)
        _drop_ready(manager, view)
        manager.fail()
        manager.reset()

        assert manager.phase is DragPhase.IDLE
        manager.start(view, DragSubject.task(2))
        assert manager.phase is DragPhase.DRAGGING
