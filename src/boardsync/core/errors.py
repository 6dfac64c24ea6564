"""Error taxonomy for the board engine.

Every error carries a machine-readable ``code`` so a presentation layer can
branch without string matching.
"""

from __future__ import annotations


class BoardSyncError(Exception):
    """Base for all engine errors."""

    code: str = "BOARDSYNC_ERROR"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(BoardSyncError):
    """A move breaks a board rule (WIP limit, delete with contents, ...).

    Raised locally before any network call, or by the service when it rejects
    a mutation.
    """

    code = "VALIDATION"


class NetworkError(BoardSyncError):
    """A persistence call failed or timed out."""

    code = "NETWORK"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(BoardSyncError):
    """The board (or another resource) does not exist or is not accessible."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: object) -> None:
        super().__init__(f"{resource.capitalize()} {identifier} not found")
        self.resource = resource
        self.identifier = identifier


class ConsistencyError(BoardSyncError):
    """The in-memory board violates an ordering or partition invariant."""

    code = "CONSISTENCY"


class SessionBusyError(BoardSyncError):
    """A drag gesture was started while another one is unsettled."""

    code = "SESSION_BUSY"
