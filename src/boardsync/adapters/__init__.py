"""Board service implementations."""

from boardsync.adapters.http import HttpBoardService
from boardsync.adapters.memory import InMemoryBoardService

__all__ = ["HttpBoardService", "InMemoryBoardService"]
