"""In-process event bus."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from boardsync.limits import EVENT_QUEUE_SIZE

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from boardsync.core.events import DomainEvent, EventHandler

log = logging.getLogger(__name__)


class InMemoryEventBus:
    """Simple event bus with fan-out to handlers and async subscribers.

    This implementation is suitable for single-process use. Events are not
    persisted or replayed; new subscribers only receive future events.
    Handlers run synchronously in emit order, which is what keeps a UI bridge
    in step with the engine's view.
    """

    def __init__(self) -> None:
        self._handlers: list[tuple[type[DomainEvent] | None, EventHandler]] = []
        self._queues: list[tuple[type[DomainEvent] | None, asyncio.Queue[DomainEvent]]] = []

    def emit(self, event: DomainEvent) -> None:
        """Deliver ``event`` to all matching handlers and subscribers."""
        for filter_type, handler in list(self._handlers):
            if filter_type is None or isinstance(event, filter_type):
                try:
                    handler(event)
                except Exception:
                    log.exception("Event handler %r failed on %s", handler, type(event).__name__)

        for filter_type, queue in list(self._queues):
            if filter_type is None or isinstance(event, filter_type):
                with contextlib.suppress(asyncio.QueueFull):
                    queue.put_nowait(event)

    async def publish(self, event: DomainEvent) -> None:
        """Publish event to all matching handlers and subscribers."""
        self.emit(event)

    def add_handler(
        self,
        handler: EventHandler,
        event_type: type[DomainEvent] | None = None,
    ) -> None:
        """Register a synchronous handler for events."""
        self._handlers.append((event_type, handler))

    def remove_handler(self, handler: EventHandler) -> None:
        """Remove a previously registered handler."""
        self._handlers = [(t, h) for t, h in self._handlers if h != handler]

    async def subscribe(
        self, event_type: type[DomainEvent] | None = None
    ) -> AsyncIterator[DomainEvent]:
        """Subscribe to events, yielding them as they arrive."""
        queue: asyncio.Queue[DomainEvent] = asyncio.Queue(maxsize=EVENT_QUEUE_SIZE)
        self._queues.append((event_type, queue))
        try:
            while True:
                event = await queue.get()
                yield event
        finally:
            self._queues = [(t, q) for t, q in self._queues if q is not queue]
