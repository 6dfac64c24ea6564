"""Core domain entities.

These mirror what the board service returns. They are frozen: every change to
the board produces new instances, which is what lets the engine keep a
pre-drop snapshot around for rollback. Field aliases follow the service's
camelCase JSON (``boardPosition``, ``wipLimit``); snake_case names are accepted
as well.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Pydantic needs runtime access

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from boardsync.core.models.enums import TaskPriority


class DomainModel(BaseModel):
    """Base model with common config."""

    model_config = ConfigDict(
        from_attributes=True,
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_payload(self) -> dict[str, object]:
        """Dump as JSON-ready data using the service's field names."""
        return self.model_dump(mode="json", by_alias=True)


class Task(DomainModel):
    """A card on the board.

    ``status`` is the column tag the task belongs to; ``board_position`` is its
    1-based slot within that column. Legacy data may lack a position.
    """

    id: int
    title: str
    status: str
    board_position: int | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    assignee: str | None = None
    points: int | None = Field(default=None, ge=0)

    @property
    def priority_label(self) -> str:
        """Return human-readable priority label."""
        return self.priority.label


class Column(DomainModel):
    """One workflow status on a board."""

    id: int
    name: str
    status: str
    order: int
    wip_limit: int | None = Field(default=None, ge=0)
    allowed_from: frozenset[str] | None = None


class Board(DomainModel):
    """Board header plus its columns."""

    id: int
    name: str
    columns: tuple[Column, ...] = ()

    @model_validator(mode="after")
    def _check_columns(self) -> Board:
        ids = [column.id for column in self.columns]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Board {self.id} has duplicate column ids")
        statuses = [column.status for column in self.columns]
        if len(statuses) != len(set(statuses)):
            raise ValueError(f"Board {self.id} maps more than one column to the same status")
        return self


class BoardSnapshot(DomainModel):
    """Everything ``get_board`` returns: the board and all of its tasks."""

    board: Board
    tasks: tuple[Task, ...] = ()

    @classmethod
    def from_payload(cls, data: object) -> BoardSnapshot:
        """Accept ``{board, tasks}`` or a board object with embedded ``tasks``."""
        if not isinstance(data, dict):
            raise TypeError(f"Board payload must be an object, got {type(data).__name__}")
        if "board" in data:
            return cls.model_validate(data)
        return cls(board=Board.model_validate(data), tasks=data.get("tasks") or ())

    @model_validator(mode="after")
    def _check_tasks(self) -> BoardSnapshot:
        ids = [task.id for task in self.tasks]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Board {self.board.id} snapshot has duplicate task ids")
        return self


class ColumnOrder(DomainModel):
    """One entry of a column reorder request."""

    column_id: int
    new_order: int
