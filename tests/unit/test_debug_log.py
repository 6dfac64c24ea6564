"""Unit tests for debug logging."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from boardsync.debug_log import (
    clear_log_buffer,
    log_buffer,
    recent_entries,
    setup_debug_logging,
    teardown_debug_logging,
)
from boardsync.limits import MAX_LOG_MESSAGE_LENGTH

if TYPE_CHECKING:
    from collections.abc import Generator

pytestmark = pytest.mark.unit

log = logging.getLogger("boardsync.tests")


@pytest.fixture(autouse=True)
def _debug_logging() -> Generator[None, None, None]:
    setup_debug_logging(logging.DEBUG)
    clear_log_buffer()
    yield
    teardown_debug_logging()
    logging.getLogger("boardsync").setLevel(logging.NOTSET)
    clear_log_buffer()


class TestLogTruncation:
    """Tests for log message truncation."""

    def test_log_truncates_oversized_messages(self):
        """Very large log messages should be truncated to prevent memory bloat."""
        log.info("x" * 10000)

        assert len(log_buffer) == 1
        message = log_buffer[0].message
        assert len(message) <= MAX_LOG_MESSAGE_LENGTH + len("... [truncated]")
        assert message.endswith("... [truncated]")

    def test_log_preserves_small_messages(self):
        log.info("Drag started")

        assert log_buffer[0].message == "boardsync.tests: Drag started"
        assert log_buffer[0].level == "INFO"
        assert log_buffer[0].logger == "boardsync.tests"


class TestRecentEntries:
    def test_filters_by_level_and_limit(self):
        log.debug("one")
        log.warning("two")
        log.error("three")

        assert [e.message for e in recent_entries(min_level=logging.WARNING)] == [
            "boardsync.tests: two",
            "boardsync.tests: three",
        ]
        assert [e.message for e in recent_entries(1)] == ["boardsync.tests: three"]

    def test_other_loggers_are_not_captured(self):
        logging.getLogger("elsewhere").warning("ignored")
        assert recent_entries() == []

    def test_setup_is_idempotent(self):
        setup_debug_logging(logging.WARNING)
        log.info("hidden")
        log.warning("shown")

        assert [e.message for e in recent_entries()] == ["boardsync.tests: shown"]
