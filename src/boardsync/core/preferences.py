"""Per-column display preferences.

Preferences (collapsed columns, colours, sort hints...) are keyed by board and
column. They are a presentation concern and the reordering logic never reads
them.
"""

from __future__ import annotations

import asyncio
import copy
from typing import TYPE_CHECKING, Any, Protocol

import aiofiles
import tomlkit

from boardsync.atomic import atomic_write
from boardsync.paths import get_preferences_path

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path


class PreferenceStore(Protocol):
    async def get(self, board_id: int, column_id: int) -> dict[str, Any]: ...

    async def set(self, board_id: int, column_id: int, values: Mapping[str, Any]) -> None: ...


class MemoryPreferenceStore:
    """Preferences kept for the lifetime of the process."""

    def __init__(self) -> None:
        self._values: dict[tuple[int, int], dict[str, Any]] = {}

    async def get(self, board_id: int, column_id: int) -> dict[str, Any]:
        return copy.deepcopy(self._values.get((board_id, column_id), {}))

    async def set(self, board_id: int, column_id: int, values: Mapping[str, Any]) -> None:
        current = self._values.setdefault((board_id, column_id), {})
        current.update(values)


class TomlPreferenceStore:
    """Preferences in a TOML file, one ``[board-<id>.column-<id>]`` table per column.

    Writes merge into the existing document so hand-written comments survive.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or get_preferences_path()
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def get(self, board_id: int, column_id: int) -> dict[str, Any]:
        doc = await self._read()
        board = doc.get(_board_key(board_id), {})
        column = board.get(_column_key(column_id), {})
        return column.unwrap() if hasattr(column, "unwrap") else dict(column)

    async def set(self, board_id: int, column_id: int, values: Mapping[str, Any]) -> None:
        async with self._lock:
            doc = await self._read()
            board_key = _board_key(board_id)
            if board_key not in doc:
                doc[board_key] = tomlkit.table(is_super_table=True)
            board = doc[board_key]
            column_key = _column_key(column_id)
            if column_key not in board:  # type: ignore[operator]
                board[column_key] = tomlkit.table()  # type: ignore[index]
            column = board[column_key]  # type: ignore[index]
            for key, value in values.items():
                column[key] = value  # type: ignore[index]
            await asyncio.to_thread(atomic_write, self._path, tomlkit.dumps(doc))

    async def _read(self) -> tomlkit.TOMLDocument:
        if not self._path.exists():
            return tomlkit.document()
        async with aiofiles.open(self._path, encoding="utf-8") as f:
            content = await f.read()
        return tomlkit.parse(content)


def _board_key(board_id: int) -> str:
    return f"board-{board_id}"


def _column_key(column_id: int) -> str:
    return f"column-{column_id}"
