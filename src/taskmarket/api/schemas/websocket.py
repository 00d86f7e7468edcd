"""WebSocket message schemas and types."""

from datetime import UTC, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from taskmarket.db.models.enums import TaskStatus


class WSMessageType(StrEnum):
    """WebSocket message types."""

    # Client -> Server
    IDENTIFY = "identify"
    JOIN_ROOM = "join-room"
    LEAVE_ROOM = "leave-room"
    SEND_MESSAGE = "send-message"
    PING = "ping"

    # Server -> Client (control)
    IDENTIFIED = "identified"
    JOINED = "joined"
    LEFT = "left"
    PONG = "pong"
    ERROR = "error"

    # Server -> Client (relayed events)
    AVAILABILITY_CHANGED = "availability-changed"
    TASK_ASSIGNED = "task-assigned"
    TASK_STATUS_UPDATED = "task-status-updated"
    NEW_MESSAGE = "new-message"


class WSMessage(BaseModel):
    """WebSocket message envelope."""

    type: WSMessageType
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    request_id: str | None = None


# Relayed event payloads


class AvailabilityChangedPayload(BaseModel):
    """Payload for AVAILABILITY_CHANGED."""

    expert_id: str
    name: str
    is_available: bool
    skills: list[str] = Field(default_factory=list)
    rating: float = 0.0


class TaskAssignedPayload(BaseModel):
    """Payload for TASK_ASSIGNED, delivered to the assigned expert only."""

    task_id: UUID
    title: str
    poster_id: str
    expert_id: str
    budget: Decimal
    timeline: datetime


class TaskStatusUpdatedPayload(BaseModel):
    """Payload for TASK_STATUS_UPDATED."""

    task_id: UUID
    status: TaskStatus
    previous_status: TaskStatus
    poster_id: str
    expert_id: str | None = None


class NewMessagePayload(BaseModel):
    """Payload for NEW_MESSAGE, delivered to the task's chat room."""

    message_id: UUID
    task_id: UUID
    sender_id: str
    receiver_id: str
    content: str
    attachment_filename: str | None = None
    attachment_url: str | None = None
    created_at: datetime
