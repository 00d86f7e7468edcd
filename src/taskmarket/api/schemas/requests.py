"""Request schemas for API endpoints."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskmarket.db.models.enums import TaskStatus, UserRole


class AttachmentRef(BaseModel):
    """Reference to a file stored outside the service."""

    filename: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1, max_length=1000)


class UserRegister(BaseModel):
    """Request schema for creating the caller's marketplace profile."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(
        ...,
        max_length=255,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        description="Contact email, unique across accounts",
    )
    role: UserRole = Field(..., description="poster or expert; cannot be changed later")
    avatar: str | None = Field(default=None, max_length=500)
    bio: str | None = Field(default=None, max_length=5000)
    skills: list[str] = Field(default_factory=list, description="Skill tags (experts)")
    hourly_rate: Decimal | None = Field(default=None, ge=0)


class TaskCreate(BaseModel):
    """Request schema for posting a new task."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=20000)
    category: list[str] = Field(
        ...,
        min_length=1,
        description="Category tags matched against expert skills",
    )
    budget: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    estimated_hours: float = Field(..., gt=0)
    timeline: datetime = Field(..., description="Target completion date")
    attachments: list[AttachmentRef] = Field(default_factory=list)


class TaskStatusUpdate(BaseModel):
    """Request schema for a status transition."""

    status: TaskStatus


class TaskAssign(BaseModel):
    """Request schema for assigning a task to an expert."""

    expert_id: str = Field(..., min_length=1, max_length=255)


class TaskReview(BaseModel):
    """Request schema for reviewing a completed task."""

    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(default=None, max_length=5000)


class MessageCreate(BaseModel):
    """Request schema for sending a chat message."""

    content: str = Field(..., min_length=1, max_length=5000)
    attachment: AttachmentRef | None = None


class AvailabilityUpdate(BaseModel):
    """Request schema for toggling expert availability."""

    is_available: bool


class ExpertProfileUpdate(BaseModel):
    """Request schema for expert profile edits.

    Only the listed fields may be changed; anything else is rejected.
    """

    skills: list[str] | None = None
    bio: str | None = Field(default=None, max_length=5000)
    hourly_rate: Decimal | None = Field(default=None, ge=0)
    avatar: str | None = Field(default=None, max_length=500)

    model_config = ConfigDict(extra="forbid")

    @field_validator("skills")
    @classmethod
    def skills_not_null(cls, value: list[str] | None) -> list[str]:
        # Omit the field to keep skills; send [] to clear them
        if value is None:
            raise ValueError("skills cannot be null")
        return value
