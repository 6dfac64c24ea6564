"""boardsync: drag-and-drop reordering and optimistic sync engine for Kanban boards."""

from boardsync.core.engine import BoardEngine
from boardsync.core.models.entities import Board, BoardSnapshot, Column, Task

__version__ = "0.1.0"

__all__ = ["Board", "BoardEngine", "BoardSnapshot", "Column", "Task"]
