"""User model."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import BOOLEAN, DECIMAL, FLOAT, INTEGER, JSON, TEXT, VARCHAR, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .enums import UserRole

if TYPE_CHECKING:
    from .task import Task


class User(Base):
    """Marketplace account, either a task poster or an expert.

    Attributes:
        id: Subject identifier issued by the identity provider
        name: Display name
        email: Unique contact email
        role: poster or expert, fixed at registration
        avatar: Avatar URL
        bio: Free-form profile text
        skills: Skill tags (experts)
        hourly_rate: Hourly rate (experts)
        rating: Mean review rating received (0 when unrated)
        completed_tasks: Number of tasks completed as expert
        is_available: Whether the expert accepts new work
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(VARCHAR(255), primary_key=True)
    name: Mapped[str] = mapped_column(VARCHAR(255))
    email: Mapped[str] = mapped_column(VARCHAR(255), unique=True, index=True)
    role: Mapped[str] = mapped_column(VARCHAR(20), default=UserRole.POSTER.value, index=True)
    avatar: Mapped[str | None] = mapped_column(VARCHAR(500))
    bio: Mapped[str | None] = mapped_column(TEXT)
    skills: Mapped[list[str]] = mapped_column(JSON, default=list)
    hourly_rate: Mapped[Decimal | None] = mapped_column(DECIMAL(10, 2))
    rating: Mapped[float] = mapped_column(FLOAT, default=0.0)
    completed_tasks: Mapped[int] = mapped_column(INTEGER, default=0)
    is_available: Mapped[bool] = mapped_column(BOOLEAN, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    # Relationships
    posted_tasks: Mapped[list[Task]] = relationship(
        back_populates="poster", foreign_keys="Task.poster_id", lazy="noload"
    )
    assigned_tasks: Mapped[list[Task]] = relationship(
        back_populates="expert", foreign_keys="Task.expert_id", lazy="noload"
    )

    @property
    def is_expert(self) -> bool:
        return self.role == UserRole.EXPERT.value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role={self.role})>"
