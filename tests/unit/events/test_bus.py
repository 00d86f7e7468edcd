"""Tests for EventBus implementation."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from taskmarket.events.bus import EventBus
from taskmarket.events.types import AvailabilityChangedEvent, EventType


@pytest.fixture
def event_bus() -> EventBus:
    """Create a fresh EventBus for testing."""
    return EventBus(max_queue_size=2)


@pytest.fixture
def sample_event() -> AvailabilityChangedEvent:
    """Create a sample event for testing."""
    return AvailabilityChangedEvent(
        actor_id="expert-1",
        expert_id="expert-1",
        name="Grace",
        is_available=True,
        skills=["python"],
    )


class TestEventBusEmit:
    """Tests for EventBus.emit method."""

    async def test_calls_type_and_global_handlers(
        self, event_bus: EventBus, sample_event: AvailabilityChangedEvent
    ) -> None:
        typed = AsyncMock()
        everything = AsyncMock()
        event_bus.subscribe(EventType.EXPERT_AVAILABILITY_CHANGED, typed)
        event_bus.subscribe_all(everything)

        await event_bus.emit(sample_event)

        typed.assert_awaited_once_with(sample_event)
        everything.assert_awaited_once_with(sample_event)

    async def test_other_types_not_called(
        self, event_bus: EventBus, sample_event: AvailabilityChangedEvent
    ) -> None:
        handler = AsyncMock()
        event_bus.subscribe(EventType.MESSAGE_SENT, handler)

        await event_bus.emit(sample_event)

        handler.assert_not_called()

    async def test_handler_error_isolated(
        self, event_bus: EventBus, sample_event: AvailabilityChangedEvent
    ) -> None:
        """One failing handler doesn't prevent others from running."""
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        healthy = AsyncMock()
        event_bus.subscribe(EventType.EXPERT_AVAILABILITY_CHANGED, failing)
        event_bus.subscribe(EventType.EXPERT_AVAILABILITY_CHANGED, healthy)

        await event_bus.emit(sample_event)

        healthy.assert_awaited_once()

    async def test_unsubscribe(
        self, event_bus: EventBus, sample_event: AvailabilityChangedEvent
    ) -> None:
        handler = AsyncMock()
        event_bus.subscribe(EventType.EXPERT_AVAILABILITY_CHANGED, handler)

        assert event_bus.unsubscribe(EventType.EXPERT_AVAILABILITY_CHANGED, handler) is True
        assert event_bus.unsubscribe(EventType.EXPERT_AVAILABILITY_CHANGED, handler) is False

        await event_bus.emit(sample_event)
        handler.assert_not_called()


class TestEventBusPublish:
    """Tests for queued publishing."""

    async def test_publish_does_not_dispatch_inline(
        self, event_bus: EventBus, sample_event: AvailabilityChangedEvent
    ) -> None:
        handler = AsyncMock()
        event_bus.subscribe_all(handler)

        assert event_bus.publish(sample_event) is True

        handler.assert_not_called()
        assert event_bus.pending == 1

    async def test_drops_when_queue_full(
        self, event_bus: EventBus, sample_event: AvailabilityChangedEvent
    ) -> None:
        assert event_bus.publish(sample_event) is True
        assert event_bus.publish(sample_event) is True

        assert event_bus.publish(sample_event) is False
        assert event_bus.pending == 2

    async def test_dispatcher_delivers_in_order(self, event_bus: EventBus) -> None:
        received: list[bool] = []

        async def handler(event: AvailabilityChangedEvent) -> None:
            received.append(event.is_available)

        event_bus.subscribe(EventType.EXPERT_AVAILABILITY_CHANGED, handler)
        event_bus.start()

        for flag in (True, False):
            event_bus.publish(
                AvailabilityChangedEvent(
                    actor_id="expert-1",
                    expert_id="expert-1",
                    name="Grace",
                    is_available=flag,
                )
            )
        await event_bus.stop()

        assert received == [True, False]

    async def test_stop_drains_queue(
        self, event_bus: EventBus, sample_event: AvailabilityChangedEvent
    ) -> None:
        handler = AsyncMock()
        event_bus.subscribe_all(handler)
        event_bus.start()

        event_bus.publish(sample_event)
        await event_bus.stop()

        handler.assert_awaited_once_with(sample_event)
        assert event_bus.pending == 0

    async def test_dispatcher_survives_handler_error(
        self, event_bus: EventBus, sample_event: AvailabilityChangedEvent
    ) -> None:
        calls = 0

        async def flaky(event: AvailabilityChangedEvent) -> None:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("first delivery fails")

        event_bus.subscribe_all(flaky)
        event_bus.start()

        event_bus.publish(sample_event)
        event_bus.publish(sample_event)
        await event_bus.stop()

        assert calls == 2

    async def test_stop_without_start(self, event_bus: EventBus) -> None:
        await event_bus.stop()

    async def test_start_twice_keeps_one_dispatcher(self, event_bus: EventBus) -> None:
        event_bus.start()
        dispatcher = event_bus._dispatcher

        event_bus.start()

        assert event_bus._dispatcher is dispatcher
        await event_bus.stop()
        await asyncio.sleep(0)
