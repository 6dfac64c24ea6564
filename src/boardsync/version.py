"""Shared package version helpers."""

from __future__ import annotations

from functools import lru_cache
from importlib.metadata import PackageNotFoundError, version


@lru_cache(maxsize=1)
def get_boardsync_version() -> str:
    """Return installed boardsync version, or 'dev' when running from a checkout."""
    try:
        return version("boardsync")
    except PackageNotFoundError:
        return "dev"


__all__ = ["get_boardsync_version"]
