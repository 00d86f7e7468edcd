"""Response schemas for API endpoints."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from taskmarket.db.models.enums import TaskStatus, UserRole

T = TypeVar("T")


class UserResponse(BaseModel):
    """Response schema for the caller's own profile."""

    id: str
    name: str
    email: str
    role: UserRole
    avatar: str | None = None
    bio: str | None = None
    skills: list[str] = []
    hourly_rate: Decimal | None = None
    rating: float = 0.0
    completed_tasks: int = 0
    is_available: bool = False
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ExpertResponse(BaseModel):
    """Public expert profile (no contact details)."""

    id: str
    name: str
    avatar: str | None = None
    bio: str | None = None
    skills: list[str] = []
    hourly_rate: Decimal | None = None
    rating: float = 0.0
    completed_tasks: int = 0
    is_available: bool = False

    model_config = ConfigDict(from_attributes=True)


class PastProjectResponse(BaseModel):
    """Completed task shown on an expert profile."""

    id: UUID
    title: str
    description: str
    poster_id: str
    review_rating: int | None = None
    review_comment: str | None = None
    completed_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ExpertProfileResponse(BaseModel):
    """Expert profile with completed work history."""

    expert: ExpertResponse
    past_projects: list[PastProjectResponse] = []


class TaskResponse(BaseModel):
    """Response schema for task data."""

    id: UUID
    title: str
    description: str
    category: list[str]
    budget: Decimal
    estimated_hours: float
    timeline: datetime
    attachments: list[dict[str, Any]] = []
    status: TaskStatus
    poster_id: str
    expert_id: str | None = None
    assigned_at: datetime | None = None
    accepted_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    total_time_seconds: int = 0
    review_rating: int | None = None
    review_comment: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    """Response schema for a chat message."""

    id: UUID
    task_id: UUID
    sender_id: str
    receiver_id: str
    content: str
    read: bool = False
    attachment_filename: str | None = None
    attachment_url: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MarkReadResponse(BaseModel):
    """Result of marking messages read."""

    task_id: UUID
    updated: int = Field(description="Number of messages marked read")


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic paginated response wrapper."""

    items: list[T]
    total: int = Field(description="Number of items in this page")
    limit: int = Field(description="Items per page")
    offset: int = Field(description="Number of items skipped")
    has_more: bool = Field(description="Whether more items exist")


class ErrorResponse(BaseModel):
    """Standardized error response."""

    error: str = Field(description="Error message")
    detail: str | None = Field(default=None, description="Detailed error information")
    code: str = Field(description="Error code (e.g., HTTP_404)")
    request_id: str = Field(description="Request ID for tracking")
