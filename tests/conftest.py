"""Pytest fixtures for boardsync tests."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from hypothesis import Phase, Verbosity, settings

from boardsync.adapters.memory import InMemoryBoardService
from boardsync.config import BoardSyncConfig
from boardsync.core.bus import InMemoryEventBus
from boardsync.core.engine import BoardEngine
from boardsync.core.notifications import NotificationLog
from boardsync.core.view import BoardView
from tests.helpers import sprint_snapshot

_TEST_BASE_DIR = Path(tempfile.mkdtemp(prefix="boardsync-tests-"))
os.environ["BOARDSYNC_CONFIG_DIR"] = str(_TEST_BASE_DIR / "config")
os.environ["BOARDSYNC_DATA_DIR"] = str(_TEST_BASE_DIR / "data")

if TYPE_CHECKING:
    from boardsync.core.models.entities import BoardSnapshot


settings.register_profile(
    "ci",
    max_examples=100,
    deadline=None,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)
settings.register_profile(
    "dev",
    max_examples=20,
    deadline=500,
)
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


@pytest.fixture
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the config directory at a fresh per-test location."""
    path = tmp_path / "config"
    monkeypatch.setenv("BOARDSYNC_CONFIG_DIR", str(path))
    return path


@pytest.fixture
def snapshot() -> BoardSnapshot:
    return sprint_snapshot()


@pytest.fixture
def view(snapshot: BoardSnapshot) -> BoardView:
    return BoardView.from_snapshot(snapshot)


@pytest.fixture
def service(snapshot: BoardSnapshot) -> InMemoryBoardService:
    return InMemoryBoardService([snapshot])


@pytest.fixture
def notifications() -> NotificationLog:
    return NotificationLog()


@pytest.fixture
def event_bus() -> InMemoryEventBus:
    """Create an in-memory event bus for engine tests."""
    return InMemoryEventBus()


@pytest.fixture
def config() -> BoardSyncConfig:
    """Defaults, except a failed drop resets to idle immediately."""
    config = BoardSyncConfig()
    config.drag.error_reset_delay = 0
    return config


@pytest.fixture
async def engine(
    service: InMemoryBoardService,
    config: BoardSyncConfig,
    notifications: NotificationLog,
    event_bus: InMemoryEventBus,
) -> BoardEngine:
    """A loaded engine over the sprint board."""
    engine = BoardEngine(
        service, 1, config=config, notifications=notifications, event_bus=event_bus
    )
    await engine.load()
    return engine
