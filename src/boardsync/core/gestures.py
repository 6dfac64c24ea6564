"""Platform-neutral gesture events.

Anything that can drag (mouse, touch, keyboard) emits the same four events:
``GestureStart`` with the subject, any number of ``GestureMove`` with the
current drop candidates and geometry, then ``GestureEnd`` or
``GestureCancel``. The engine consumes them through ``GestureSource``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, TypeAlias

from boardsync.core.collision import Droppable, DropTarget
from boardsync.core.models.enums import Direction, SubjectKind
from boardsync.limits import ACTIVATION_DISTANCE

if TYPE_CHECKING:
    from collections.abc import Callable

    from boardsync.core.geometry import Point, Rect
    from boardsync.core.moves import DragSubject
    from boardsync.core.view import BoardView

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GestureStart:
    subject: DragSubject


@dataclass(frozen=True, slots=True)
class GestureMove:
    candidates: tuple[Droppable, ...]
    pointer: Point | None = None
    dragged_rect: Rect | None = None


@dataclass(frozen=True, slots=True)
class GestureEnd:
    pass


@dataclass(frozen=True, slots=True)
class GestureCancel:
    pass


GestureEvent: TypeAlias = GestureStart | GestureMove | GestureEnd | GestureCancel
GestureHandler: TypeAlias = "Callable[[GestureEvent], None]"


class GestureSource(Protocol):
    def subscribe(self, handler: GestureHandler) -> Callable[[], None]:
        """Register ``handler``; the returned callable unsubscribes it."""
        ...


class GestureChannel:
    """A GestureSource that input adapters push events into."""

    def __init__(self) -> None:
        self._handlers: list[GestureHandler] = []

    def subscribe(self, handler: GestureHandler) -> Callable[[], None]:
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def push(self, event: GestureEvent) -> None:
        for handler in list(self._handlers):
            handler(event)


class PointerGestureTracker:
    """Turn raw pointer down/move/up into gestures.

    A pointer-down only becomes a drag once the pointer has travelled more
    than ``activation_distance``; a press and release without that travel is a
    click and emits nothing.
    """

    def __init__(
        self, channel: GestureChannel, *, activation_distance: float = ACTIVATION_DISTANCE
    ) -> None:
        self._channel = channel
        self._activation_distance = activation_distance
        self._subject: DragSubject | None = None
        self._origin: Point | None = None
        self._rect: Rect | None = None
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    @property
    def pending(self) -> bool:
        return self._subject is not None and not self._active

    def pointer_down(self, subject: DragSubject, point: Point, rect: Rect | None = None) -> None:
        self._subject = subject
        self._origin = point
        self._rect = rect
        self._active = False

    def pointer_move(self, point: Point, candidates: tuple[Droppable, ...]) -> bool:
        """Report pointer travel. Returns True once a drag is under way."""
        if self._subject is None or self._origin is None:
            return False
        if not self._active:
            if self._origin.distance_to(point) <= self._activation_distance:
                return False
            self._active = True
            log.debug("Pointer drag activated for %s %s", self._subject.kind, self._subject.id)
            self._channel.push(GestureStart(self._subject))

        dragged = None
        if self._rect is not None:
            dragged = self._rect.translated(point.x - self._origin.x, point.y - self._origin.y)
        self._channel.push(GestureMove(candidates, pointer=point, dragged_rect=dragged))
        return True

    def pointer_up(self) -> None:
        if self._active:
            self._channel.push(GestureEnd())
        self._clear()

    def cancel(self) -> None:
        if self._active:
            self._channel.push(GestureCancel())
        self._clear()

    def _clear(self) -> None:
        self._subject = None
        self._origin = None
        self._rect = None
        self._active = False


class KeyboardGestureController:
    """Drag with the keyboard.

    Picking up a subject places a cursor on its own slot. Left/right changes
    column; up/down walks the slots of a column, where the slot after the
    last task is the column itself (append). Columns only move left/right.
    Every cursor move emits a single explicit candidate with no geometry.
    """

    def __init__(self, channel: GestureChannel, view: Callable[[], BoardView]) -> None:
        self._channel = channel
        self._view = view
        self._subject: DragSubject | None = None
        self._column_index = 0
        self._row = 0

    @property
    def active(self) -> bool:
        return self._subject is not None

    @property
    def cursor(self) -> tuple[int, int]:
        return self._column_index, self._row

    def pick_up(self, subject: DragSubject) -> bool:
        """Start a keyboard drag. Returns False if the subject is not on the board."""
        view = self._view()
        if subject.kind is SubjectKind.TASK:
            location = view.locate(subject.id)
            if location is None:
                return False
            column, row = location
            self._column_index = view.column_index(column.id)
            self._row = row
        else:
            if view.find_column(subject.id) is None:
                return False
            self._column_index = view.column_index(subject.id)
            self._row = 0

        self._subject = subject
        self._channel.push(GestureStart(subject))
        self._emit_target(view)
        return True

    def move(self, direction: Direction) -> DropTarget | None:
        """Move the cursor and announce the new target."""
        if self._subject is None:
            return None
        view = self._view()
        if not view.columns:
            return None

        if direction in (Direction.LEFT, Direction.RIGHT):
            step = -1 if direction is Direction.LEFT else 1
            self._column_index = max(0, min(self._column_index + step, len(view.columns) - 1))
        elif self._subject.kind is SubjectKind.TASK:
            step = -1 if direction is Direction.UP else 1
            self._row += step
        self._row = max(0, min(self._row, self._last_row(view)))
        return self._emit_target(view)

    def drop(self) -> None:
        if self._subject is None:
            return
        self._subject = None
        self._channel.push(GestureEnd())

    def cancel(self) -> None:
        if self._subject is None:
            return
        self._subject = None
        self._channel.push(GestureCancel())

    def _last_row(self, view: BoardView) -> int:
        if self._subject is None or self._subject.kind is SubjectKind.COLUMN:
            return 0
        column = view.columns[self._column_index]
        count = len(view.tasks_in(column.id))
        location = view.locate(self._subject.id)
        if location is not None and location[0].id == column.id:
            # The subject's own column has no extra slot: its end is the last task.
            return max(0, count - 1)
        return count

    def _target(self, view: BoardView) -> DropTarget:
        column = view.columns[self._column_index]
        if self._subject is not None and self._subject.kind is SubjectKind.TASK:
            tasks = view.tasks_in(column.id)
            if self._row < len(tasks):
                return DropTarget.task(tasks[self._row].id, column.id)
        return DropTarget.column(column.id)

    def _emit_target(self, view: BoardView) -> DropTarget:
        target = self._target(view)
        self._channel.push(GestureMove((Droppable(target),)))
        return target
