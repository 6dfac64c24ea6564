"""Unit tests for column preference stores."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from boardsync.core.preferences import MemoryPreferenceStore, TomlPreferenceStore

if TYPE_CHECKING:
    from pathlib import Path

pytestmark = pytest.mark.unit


class TestMemoryPreferenceStore:
    async def test_set_merges_and_get_copies(self):
        store = MemoryPreferenceStore()
        await store.set(1, 10, {"collapsed": True})
        await store.set(1, 10, {"color": "red"})

        values = await store.get(1, 10)
        values["color"] = "blue"

        assert await store.get(1, 10) == {"collapsed": True, "color": "red"}
        assert await store.get(1, 20) == {}


class TestTomlPreferenceStore:
    async def test_missing_file_reads_empty(self, tmp_path: Path):
        store = TomlPreferenceStore(tmp_path / "prefs.toml")
        assert await store.get(1, 10) == {}

    async def test_values_are_keyed_by_board_and_column(self, tmp_path: Path):
        store = TomlPreferenceStore(tmp_path / "prefs.toml")
        await store.set(1, 10, {"collapsed": True, "width": 30})
        await store.set(1, 20, {"color": "green"})
        await store.set(2, 10, {"collapsed": False})

        reopened = TomlPreferenceStore(tmp_path / "prefs.toml")
        assert await reopened.get(1, 10) == {"collapsed": True, "width": 30}
        assert await reopened.get(1, 20) == {"color": "green"}
        assert await reopened.get(2, 10) == {"collapsed": False}
        assert "[board-1.column-10]" in (tmp_path / "prefs.toml").read_text(encoding="utf-8")

    async def test_comments_survive_updates(self, tmp_path: Path):
        path = tmp_path / "prefs.toml"
        path.write_text(
            "# my board layout\n[board-1.column-10]\ncollapsed = true # keep\n",
            encoding="utf-8",
        )

        await TomlPreferenceStore(path).set(1, 10, {"color": "red"})

        content = path.read_text(encoding="utf-8")
        assert "# my board layout" in content
        assert "# keep" in content
        assert await TomlPreferenceStore(path).get(1, 10) == {"collapsed": True, "color": "red"}

    def test_default_path(self, config_dir: Path):
        assert TomlPreferenceStore().path == config_dir / "preferences.toml"
