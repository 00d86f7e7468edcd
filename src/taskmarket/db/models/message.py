"""Chat message model."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import BOOLEAN, TEXT, VARCHAR, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .task import Task


class Message(Base):
    """Chat message exchanged between the two parties of a task.

    Attributes:
        id: Primary key (UUID)
        task_id: Owning task
        sender_id: Sending party
        receiver_id: Receiving party
        content: Message text
        read: Whether the receiver has read the message
        attachment_filename: Optional attachment name
        attachment_url: Optional attachment location
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    __tablename__ = "messages"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    task_id: Mapped[UUID] = mapped_column(ForeignKey("tasks.id", ondelete="CASCADE"), index=True)
    sender_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    receiver_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    content: Mapped[str] = mapped_column(TEXT)
    read: Mapped[bool] = mapped_column(BOOLEAN, default=False)
    attachment_filename: Mapped[str | None] = mapped_column(VARCHAR(255))
    attachment_url: Mapped[str | None] = mapped_column(VARCHAR(1000))
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    # Relationships
    task: Mapped[Task] = relationship(back_populates="messages", lazy="noload")

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, task_id={self.task_id})>"
