"""EventBus implementation for async event handling.

Provides a pub/sub mechanism for decoupling event emitters from handlers.
Publishers hand events to a bounded queue and return immediately; a
dispatcher task drains the queue and fans each event out to handlers.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections import defaultdict
from collections.abc import Awaitable, Callable

import structlog

from .types import Event, EventType

logger = structlog.get_logger()

EventHandler = Callable[[Event], Awaitable[None]]


class EventBus:
    """Async event bus with type-based routing.

    Features:
    - Subscribe to specific event types or all events
    - Non-blocking publish through a bounded queue (events are dropped
      when the queue is full)
    - Parallel handler execution
    - Error isolation (one handler failure doesn't affect others)
    """

    def __init__(self, max_queue_size: int = 1000) -> None:
        """Initialize empty handler registry.

        Args:
            max_queue_size: Pending events kept before publish starts dropping
        """
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._global_handlers: list[EventHandler] = []
        self._queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=max_queue_size)
        self._dispatcher: asyncio.Task[None] | None = None

    def subscribe(self, event_type: EventType | str, handler: EventHandler) -> None:
        """Subscribe handler to a specific event type.

        Args:
            event_type: Event type to subscribe to
            handler: Async function to call when event is emitted
        """
        event_key = str(event_type)
        self._handlers[event_key].append(handler)
        logger.debug("event_handler_subscribed", event_type=event_key)

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe handler to all events.

        Args:
            handler: Async function to call for every event
        """
        self._global_handlers.append(handler)
        logger.debug("global_event_handler_subscribed")

    def unsubscribe(self, event_type: EventType | str, handler: EventHandler) -> bool:
        """Unsubscribe handler from a specific event type.

        Returns:
            True if handler was found and removed
        """
        handlers = self._handlers.get(str(event_type), [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def publish(self, event: Event) -> bool:
        """Queue an event for asynchronous dispatch.

        Never blocks the caller. When the queue is full the event is
        dropped and logged.

        Args:
            event: Event to publish

        Returns:
            True if the event was queued
        """
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                "event_dropped_queue_full",
                event_type=str(event.type),
                queue_size=self._queue.qsize(),
            )
            return False
        return True

    async def emit(self, event: Event) -> None:
        """Deliver an event to all subscribed handlers now.

        Handlers are called in parallel. Errors are logged but don't
        prevent other handlers from executing.

        Args:
            event: Event to emit
        """
        event_type = str(event.type)
        handlers = self._handlers.get(event_type, []) + self._global_handlers

        if not handlers:
            logger.debug("event_no_handlers", event_type=event_type)
            return

        results = await asyncio.gather(
            *[handler(event) for handler in handlers],
            return_exceptions=True,
        )

        for result in results:
            if isinstance(result, Exception):
                logger.error(
                    "event_handler_error",
                    event_type=event_type,
                    error=str(result),
                    error_type=type(result).__name__,
                )

    async def _dispatch_loop(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self.emit(event)
            finally:
                self._queue.task_done()

    def start(self) -> None:
        """Start the dispatcher task on the running loop."""
        if self._dispatcher is None or self._dispatcher.done():
            self._dispatcher = asyncio.create_task(self._dispatch_loop())
            logger.info("event_dispatcher_started")

    async def stop(self) -> None:
        """Deliver what is already queued, then stop the dispatcher."""
        if self._dispatcher is None:
            return
        if not self._dispatcher.done():
            await self._queue.join()
        self._dispatcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._dispatcher
        self._dispatcher = None
        logger.info("event_dispatcher_stopped")

    @property
    def pending(self) -> int:
        """Number of events waiting for dispatch."""
        return self._queue.qsize()

    def clear(self) -> None:
        """Remove all handlers. Useful for testing."""
        self._handlers.clear()
        self._global_handlers.clear()
