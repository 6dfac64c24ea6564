"""Numeric limits and timeouts - no circular dependencies."""

from __future__ import annotations

ACTIVATION_DISTANCE: int = 5
"""Pointer travel (cells or pixels) before a pointer-down becomes a drag."""

ERROR_RESET_DELAY: float = 0.5
"""Seconds a failed drop stays in the error phase before returning to idle."""

REQUEST_TIMEOUT: float = 30.0
"""Default timeout for calls to the board REST API."""

MAX_LOG_MESSAGE_LENGTH: int = 2000
MAX_LOG_LINES: int = 2000

EVENT_QUEUE_SIZE: int = 100
"""Per-subscriber buffer for the in-memory event bus."""
