"""Task model."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from sqlalchemy import (
    DECIMAL,
    FLOAT,
    INTEGER,
    JSON,
    SMALLINT,
    TEXT,
    VARCHAR,
    DateTime,
    ForeignKey,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .enums import TaskStatus

if TYPE_CHECKING:
    from .message import Message
    from .user import User


class Task(Base):
    """Posted unit of work and its lifecycle state.

    Attributes:
        id: Primary key (UUID)
        title: Short task title
        description: Full task description
        category: Category tags matched against expert skills
        budget: Offered budget
        estimated_hours: Poster's effort estimate
        timeline: Target completion date
        attachments: Attachment references ({filename, url, upload_date})
        status: Lifecycle status (see TaskStatus)
        poster_id: Owning poster
        expert_id: Bound expert, set only in expert-bound statuses
        assigned_at / accepted_at / started_at / completed_at / cancelled_at:
            Transition timestamps
        total_time_seconds: Working time between start and completion
        review_rating: Poster's rating of the work (1-5)
        review_comment: Poster's review text
        reviewed_at: Review timestamp
    """

    __tablename__ = "tasks"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    title: Mapped[str] = mapped_column(VARCHAR(200))
    description: Mapped[str] = mapped_column(TEXT)
    category: Mapped[list[str]] = mapped_column(JSON, default=list)
    budget: Mapped[Decimal] = mapped_column(DECIMAL(12, 2))
    estimated_hours: Mapped[float] = mapped_column(FLOAT)
    timeline: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    attachments: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    status: Mapped[str] = mapped_column(VARCHAR(20), default=TaskStatus.PENDING.value, index=True)
    poster_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    expert_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), index=True)
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    total_time_seconds: Mapped[int] = mapped_column(INTEGER, default=0)
    review_rating: Mapped[int | None] = mapped_column(SMALLINT)
    review_comment: Mapped[str | None] = mapped_column(TEXT)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    # Relationships
    poster: Mapped[User] = relationship(
        back_populates="posted_tasks", foreign_keys=[poster_id], lazy="noload"
    )
    expert: Mapped[User | None] = relationship(
        back_populates="assigned_tasks", foreign_keys=[expert_id], lazy="noload"
    )
    messages: Mapped[list[Message]] = relationship(back_populates="task", lazy="noload")

    def is_party(self, user_id: str) -> bool:
        """Whether the user is the poster or the bound expert."""
        return user_id == self.poster_id or (
            self.expert_id is not None and user_id == self.expert_id
        )

    def other_party(self, user_id: str) -> str | None:
        """Return the counterpart of a party in this task."""
        if user_id == self.poster_id:
            return self.expert_id
        if user_id == self.expert_id:
            return self.poster_id
        return None

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, status={self.status})>"
