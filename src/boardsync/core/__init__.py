"""Core drag-and-drop engine: geometry, validation, ordering and sync."""
