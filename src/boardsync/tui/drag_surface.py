"""Textual widget that renders a board and turns mouse and keys into gestures."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from textual.binding import Binding, BindingType
from textual.containers import Horizontal, Vertical
from textual.widget import Widget
from textual.widgets import Label

from boardsync.core.collision import Droppable, DropTarget
from boardsync.core.events import PhaseChanged, ViewChanged
from boardsync.core.geometry import Point, Rect
from boardsync.core.gestures import (
    GestureChannel,
    KeyboardGestureController,
    PointerGestureTracker,
)
from boardsync.core.models.enums import Direction, DragPhase, NotificationKind
from boardsync.core.moves import DragSubject
from boardsync.core.validation import wip_status
from boardsync.limits import ACTIVATION_DISTANCE

if TYPE_CHECKING:
    from collections.abc import Callable

    from textual import events
    from textual.app import App, ComposeResult
    from textual.geometry import Region

    from boardsync.core.engine import BoardEngine
    from boardsync.core.events import DomainEvent
    from boardsync.core.models.entities import Column, Task
    from boardsync.core.notifications import Notification


_SEVERITY = {
    NotificationKind.SUCCESS: "information",
    NotificationKind.INFO: "information",
    NotificationKind.WARNING: "warning",
    NotificationKind.ERROR: "error",
}


class AppNotificationSink:
    """Show engine notifications as Textual toasts."""

    def __init__(self, app: App) -> None:
        self._app = app

    def notify(self, notification: Notification) -> None:
        self._app.notify(notification.message, severity=_SEVERITY[notification.kind])  # type: ignore[arg-type]


class ColumnPanel(Vertical):
    """One board column; a drop region."""

    ALLOW_SELECT = False

    def __init__(self, column: Column, **kwargs) -> None:
        super().__init__(id=f"column-{column.id}", classes="board-column", **kwargs)
        self.column_id = column.id


class TaskCardLabel(Label):
    """One task; both draggable and a drop slot."""

    ALLOW_SELECT = False

    def __init__(self, task: Task, column_id: int, **kwargs) -> None:
        super().__init__(task.title, id=f"card-{task.id}", classes="task-card", **kwargs)
        self.task_id = task.id
        self.column_id = column_id


class BoardDragSurface(Widget):
    """Board view driven by a ``BoardEngine``.

    Mouse: press on a card (or a column header) and drag; the gesture only
    starts after the pointer travels past the activation distance. Keyboard:
    arrows select a card, space picks it up, arrows move it, enter drops,
    escape cancels.
    """

    can_focus = True

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("space", "pick_up", "Pick up"),
        Binding("left", "nudge('left')", "Left", show=False),
        Binding("right", "nudge('right')", "Right", show=False),
        Binding("up", "nudge('up')", "Up", show=False),
        Binding("down", "nudge('down')", "Down", show=False),
        Binding("enter", "drop", "Drop"),
        Binding("escape", "cancel", "Cancel"),
    ]

    DEFAULT_CSS = """
    BoardDragSurface { height: 1fr; }
    BoardDragSurface .board { height: 1fr; }
    BoardDragSurface .board-column { width: 1fr; border: round $panel; padding: 0 1; }
    BoardDragSurface .column-header { text-style: bold; }
    BoardDragSurface .task-card { width: 1fr; margin: 0 0 1 0; }
    BoardDragSurface .task-card.selected { background: $accent 30%; }
    BoardDragSurface .task-card.lifted { text-style: italic; background: $primary 40%; }
    BoardDragSurface .drop-target { border: heavy $success; }
    """

    def __init__(
        self,
        engine: BoardEngine,
        *,
        activation_distance: float = ACTIVATION_DISTANCE,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._engine = engine
        self._channel = GestureChannel()
        self._pointer = PointerGestureTracker(self._channel, activation_distance=activation_distance)
        self._keyboard = KeyboardGestureController(self._channel, lambda: engine.view)
        self._selected: int | None = None
        self._detach_engine: Callable[[], None] | None = None

    @property
    def selected_task(self) -> int | None:
        return self._selected

    # ── lifecycle ───────────────────────────────────────────────────────

    def compose(self) -> ComposeResult:
        view = self._engine.view
        session = self._engine.session
        lifted = session.subject.id if session is not None else None
        target = session.target if session is not None else None

        with Horizontal(classes="board"):
            for column in view.columns:
                with ColumnPanel(column) as panel:
                    if target is not None and target.column_id == column.id:
                        panel.add_class("drop-target")
                    yield Label(self._header(column), classes="column-header")
                    for task in view.tasks_in(column.id):
                        card = TaskCardLabel(task, column.id)
                        if task.id == self._selected:
                            card.add_class("selected")
                        if task.id == lifted:
                            card.add_class("lifted")
                        yield card

    def on_mount(self) -> None:
        self._detach_engine = self._engine.attach(self._channel)
        self._engine.events.add_handler(self._on_engine_event, ViewChanged)
        self._engine.events.add_handler(self._on_engine_event, PhaseChanged)
        if self._selected is None:
            tasks = self._engine.view.all_tasks()
            self._selected = tasks[0].id if tasks else None
            self.refresh(recompose=True)

    def on_unmount(self) -> None:
        if self._detach_engine is not None:
            self._detach_engine()
            self._detach_engine = None
        self._engine.events.remove_handler(self._on_engine_event)

    def _on_engine_event(self, event: DomainEvent) -> None:
        if isinstance(event, PhaseChanged):
            self.set_class(event.phase is DragPhase.DRAGGING, "dragging")
        self.refresh(recompose=True)

    # ── mouse ───────────────────────────────────────────────────────────

    def on_mouse_down(self, event: events.MouseDown) -> None:
        point = Point(event.screen_x, event.screen_y)
        picked = self._subject_at(point)
        if picked is None:
            return
        subject, region = picked
        self._pointer.pointer_down(subject, point, _rect(region))
        self.capture_mouse()

    def on_mouse_move(self, event: events.MouseMove) -> None:
        if not (self._pointer.pending or self._pointer.active):
            return
        self._pointer.pointer_move(Point(event.screen_x, event.screen_y), self.droppables())

    def on_mouse_up(self, event: events.MouseUp) -> None:
        del event
        self.release_mouse()
        self._pointer.pointer_up()

    # ── keyboard ────────────────────────────────────────────────────────

    def action_pick_up(self) -> None:
        if self._keyboard.active or self._selected is None:
            return
        subject = DragSubject.task(self._selected)
        if not self._engine.can_start_drag(subject):
            self.app.bell()
            return
        self._keyboard.pick_up(subject)

    def action_nudge(self, direction: str) -> None:
        if self._keyboard.active:
            self._keyboard.move(Direction(direction))
            return
        self._move_selection(Direction(direction))

    def action_drop(self) -> None:
        self._keyboard.drop()

    def action_cancel(self) -> None:
        if self._keyboard.active:
            self._keyboard.cancel()
        else:
            self._pointer.cancel()

    # ── geometry ────────────────────────────────────────────────────────

    def droppables(self) -> tuple[Droppable, ...]:
        """Current drop regions from the rendered columns and cards."""
        regions = [
            Droppable(DropTarget.task(card.task_id, card.column_id), _rect(card.region))
            for card in self.query(TaskCardLabel)
        ]
        regions.extend(
            Droppable(DropTarget.column(panel.column_id), _rect(panel.region))
            for panel in self.query(ColumnPanel)
        )
        return tuple(regions)

    def _subject_at(self, point: Point) -> tuple[DragSubject, Region] | None:
        for card in self.query(TaskCardLabel):
            if _rect(card.region).contains(point):
                return DragSubject.task(card.task_id), card.region
        for panel in self.query(ColumnPanel):
            header = panel.query(".column-header").first()
            if _rect(header.region).contains(point):
                return DragSubject.column(panel.column_id), panel.region
        return None

    def _move_selection(self, direction: Direction) -> None:
        view = self._engine.view
        if not view.columns:
            return
        location = view.locate(self._selected) if self._selected is not None else None
        column_index, row = (view.column_index(location[0].id), location[1]) if location else (0, 0)

        if direction in (Direction.LEFT, Direction.RIGHT):
            step = -1 if direction is Direction.LEFT else 1
            column_index = max(0, min(column_index + step, len(view.columns) - 1))
        else:
            row += -1 if direction is Direction.UP else 1

        tasks = view.tasks_in(view.columns[column_index].id)
        if tasks:
            self._selected = tasks[max(0, min(row, len(tasks) - 1))].id
            self.refresh(recompose=True)

    def _header(self, column: Column) -> str:
        status = wip_status(self._engine.view, column.id)
        if status.limit is None:
            return f"{column.name} ({status.count})"
        return f"{column.name} ({status.count}/{status.limit})"


def _rect(region: Region) -> Rect:
    return Rect(region.x, region.y, region.width, region.height)
