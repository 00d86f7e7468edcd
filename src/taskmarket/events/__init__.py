"""Domain events flowing from the persistence path to the relay.

Services publish events after committing; handlers subscribed on the
EventBus project them onto WebSocket connections and logs.
"""

from .bus import EventBus
from .types import (
    AvailabilityChangedEvent,
    Event,
    EventType,
    MessageSentEvent,
    TaskAssignedEvent,
    TaskStatusUpdatedEvent,
)

__all__ = [
    # Bus
    "EventBus",
    # Types
    "Event",
    "EventType",
    "AvailabilityChangedEvent",
    "TaskAssignedEvent",
    "TaskStatusUpdatedEvent",
    "MessageSentEvent",
]
