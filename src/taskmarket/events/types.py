"""Event type definitions for the event bus.

Events are published by the domain services after their changes are
committed. They carry everything the relay needs so that the projection
never reads from the database.
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from taskmarket.db.models.enums import TaskStatus

__all__ = [
    "EventType",
    "Event",
    "AvailabilityChangedEvent",
    "TaskAssignedEvent",
    "TaskStatusUpdatedEvent",
    "MessageSentEvent",
]


class EventType(StrEnum):
    """All event types in the system."""

    EXPERT_AVAILABILITY_CHANGED = "expert.availability_changed"
    TASK_ASSIGNED = "task.assigned"
    TASK_STATUS_UPDATED = "task.status_updated"
    MESSAGE_SENT = "message.sent"


class Event(BaseModel):
    """Base class for all events.

    actor_id is the user whose action produced the event; broadcasts
    skip the actor's own connection.
    """

    type: EventType
    actor_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = {"use_enum_values": True}


class AvailabilityChangedEvent(Event):
    """Emitted when an expert toggles availability."""

    type: EventType = EventType.EXPERT_AVAILABILITY_CHANGED
    expert_id: str
    name: str
    is_available: bool
    skills: list[str] = Field(default_factory=list)
    rating: float = 0.0


class TaskAssignedEvent(Event):
    """Emitted when a poster binds an expert to a task."""

    type: EventType = EventType.TASK_ASSIGNED
    task_id: UUID
    title: str
    poster_id: str
    expert_id: str
    budget: Decimal
    timeline: datetime


class TaskStatusUpdatedEvent(Event):
    """Emitted after any lifecycle transition other than assignment."""

    type: EventType = EventType.TASK_STATUS_UPDATED
    task_id: UUID
    status: TaskStatus
    previous_status: TaskStatus
    poster_id: str
    expert_id: str | None = None


class MessageSentEvent(Event):
    """Emitted when a chat message is stored."""

    type: EventType = EventType.MESSAGE_SENT
    message_id: UUID
    task_id: UUID
    sender_id: str
    receiver_id: str
    content: str
    attachment_filename: str | None = None
    attachment_url: str | None = None
    created_at: datetime
