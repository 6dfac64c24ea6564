"""Test helpers package."""

from tests.helpers.boards import (
    board_payload,
    build_snapshot,
    layout,
    positions,
    sprint_snapshot,
)

__all__ = [
    "board_payload",
    "build_snapshot",
    "layout",
    "positions",
    "sprint_snapshot",
]
