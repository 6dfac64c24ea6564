"""Simulation scripts: a JSON list of board operations."""

from __future__ import annotations

from typing import Annotated, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _Step(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class MoveStep(_Step):
    """Drag a task onto a column, optionally at ``index`` (0-based)."""

    op: Literal["move"]
    task: int
    column: int
    index: int | None = Field(default=None, ge=0)


class MoveColumnStep(_Step):
    op: Literal["move_column"]
    column: int
    index: int = Field(ge=0)


class DeleteColumnStep(_Step):
    op: Literal["delete_column"]
    column: int


class BatchMoveStep(_Step):
    op: Literal["batch_move"]
    tasks: list[int]
    column: int


class BatchDeleteStep(_Step):
    op: Literal["batch_delete"]
    tasks: list[int]


Step: TypeAlias = Annotated[
    MoveStep | MoveColumnStep | DeleteColumnStep | BatchMoveStep | BatchDeleteStep,
    Field(discriminator="op"),
]


class Script(BaseModel):
    steps: list[Step]


_steps_adapter: TypeAdapter[list[Step]] = TypeAdapter(list[Step])


def parse_script(text: str) -> list[Step]:
    """Parse either a bare list of steps or ``{"steps": [...]}``."""
    stripped = text.lstrip()
    if stripped.startswith("["):
        return _steps_adapter.validate_json(text)
    return Script.model_validate_json(text).steps
