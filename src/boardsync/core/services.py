"""Persistence boundary the engine talks to."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from boardsync.core.models.entities import BoardSnapshot, ColumnOrder, Task


class BoardService(Protocol):
    """Board and task persistence.

    Mutations raise ``NetworkError`` on transport failure and ``ValidationError``
    when the service rejects the change. ``get_board`` raises ``NotFoundError``
    for a missing or inaccessible board.
    """

    async def get_board(self, board_id: int) -> BoardSnapshot: ...

    async def update_task_status(self, task_id: int, status: str) -> Task: ...

    async def update_task(self, task_id: int, changes: Mapping[str, Any]) -> Task: ...

    async def reorder_columns(self, board_id: int, orders: Sequence[ColumnOrder]) -> None: ...

    async def delete_task(self, task_id: int) -> None: ...

    async def delete_column(self, board_id: int, column_id: int) -> None: ...
