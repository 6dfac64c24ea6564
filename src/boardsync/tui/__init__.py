"""Textual presentation adapter."""

from boardsync.tui.drag_surface import AppNotificationSink, BoardDragSurface

__all__ = ["AppNotificationSink", "BoardDragSurface"]
