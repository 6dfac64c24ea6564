"""Core domain enums."""

from __future__ import annotations

from enum import IntEnum, StrEnum


class DragPhase(StrEnum):
    """Lifecycle phase of the drag session manager."""

    IDLE = "idle"
    DRAGGING = "dragging"
    DROPPING = "dropping"
    ERROR = "error"


class SubjectKind(StrEnum):
    """What is being dragged, or what a drop target is."""

    TASK = "task"
    COLUMN = "column"


class NotificationKind(StrEnum):
    """Severity of a user-facing notification."""

    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class DropOutcome(StrEnum):
    """How a drop gesture settled."""

    CANCELLED = "cancelled"
    NOOP = "noop"
    REJECTED = "rejected"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"


class WipState(StrEnum):
    """Column fill level relative to its WIP limit."""

    NONE = "none"
    UNDER = "under"
    AT = "at"
    OVER = "over"


class BatchAction(StrEnum):
    """Operations available on a multi-task selection."""

    MOVE = "move"
    DELETE = "delete"


class CollisionStrategy(StrEnum):
    """Which step of the collision priority chain produced a hit."""

    EXPLICIT = "explicit"
    POINTER_WITHIN = "pointer_within"
    RECT_INTERSECTION = "rect_intersection"
    CLOSEST_CENTER = "closest_center"


class Direction(StrEnum):
    """Keyboard navigation direction."""

    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"


class TaskPriority(IntEnum):
    """Task priority levels."""

    LOW = 0
    MEDIUM = 1
    HIGH = 2
    URGENT = 3

    @property
    def label(self) -> str:
        """Short display label."""
        return {self.LOW: "LOW", self.MEDIUM: "MED", self.HIGH: "HIGH", self.URGENT: "URG"}[self]
