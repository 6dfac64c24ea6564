"""Reading board files for CLI commands."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import click
from pydantic import ValidationError as PydanticValidationError

from boardsync.core.models.entities import BoardSnapshot

if TYPE_CHECKING:
    from pathlib import Path


def load_snapshot(path: Path) -> BoardSnapshot:
    """Parse a board JSON file, turning bad data into a usage error."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"{path}: invalid JSON ({exc})") from exc
    try:
        return BoardSnapshot.from_payload(data)
    except (PydanticValidationError, TypeError, ValueError) as exc:
        raise click.ClickException(f"{path}: not a board snapshot\n{exc}") from exc
