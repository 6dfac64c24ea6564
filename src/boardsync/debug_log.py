"""Debug logging captured into an in-process ring buffer.

Engine modules log through the standard ``logging`` module. When debug logging
is enabled the records are also kept in ``log_buffer`` so a presentation layer
(or the CLI ``--debug`` flag) can show what happened during a gesture without
attaching a log file.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass

from boardsync.limits import MAX_LOG_LINES, MAX_LOG_MESSAGE_LENGTH


@dataclass(slots=True)
class LogEntry:
    """A captured log entry."""

    level: str
    logger: str
    message: str
    timestamp: float


log_buffer: deque[LogEntry] = deque(maxlen=MAX_LOG_LINES)

log = logging.getLogger(__name__)


class DebugLogHandler(logging.Handler):
    """Logging handler that captures records into ``log_buffer``."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            if len(message) > MAX_LOG_MESSAGE_LENGTH:
                message = message[:MAX_LOG_MESSAGE_LENGTH] + "... [truncated]"
            log_buffer.append(
                LogEntry(
                    level=record.levelname,
                    logger=record.name,
                    message=message,
                    timestamp=record.created,
                )
            )
        except Exception:
            self.handleError(record)


_handler: DebugLogHandler | None = None


def setup_debug_logging(level: int | str = logging.DEBUG) -> None:
    """Attach the buffer handler to the ``boardsync`` logger.

    Idempotent: later calls only adjust the level.
    """
    global _handler

    package_logger = logging.getLogger("boardsync")
    package_logger.setLevel(level)
    if _handler is not None:
        _handler.setLevel(level)
        return

    _handler = DebugLogHandler(level)
    _handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    package_logger.addHandler(_handler)
    log.debug("Debug logging initialized")


def teardown_debug_logging() -> None:
    """Detach the buffer handler (used by tests and CLI shutdown)."""
    global _handler

    if _handler is None:
        return
    logging.getLogger("boardsync").removeHandler(_handler)
    _handler = None


def recent_entries(limit: int | None = None, *, min_level: int = logging.NOTSET) -> list[LogEntry]:
    """Return buffered entries, oldest first, optionally filtered by level."""
    entries = [
        entry for entry in log_buffer if logging.getLevelName(entry.level) >= min_level
    ]
    if limit is not None:
        entries = entries[-limit:]
    return entries


def clear_log_buffer() -> None:
    """Drop all buffered entries."""
    log_buffer.clear()
