"""Message repository for chat operations."""

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.message import Message
from .base import BaseRepository


class MessageRepository(BaseRepository[Message]):
    """Repository for Message model operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize message repository.

        Args:
            session: Database session
        """
        super().__init__(Message, session)

    async def get_by_task_id(
        self,
        task_id: UUID,
        limit: int = 500,
        offset: int = 0,
    ) -> list[Message]:
        """Get a task's messages in chronological order.

        Args:
            task_id: Task UUID
            limit: Maximum number of messages to return
            offset: Number of messages to skip

        Returns:
            List of messages, oldest first
        """
        stmt = (
            select(Message)
            .where(Message.task_id == task_id)
            .order_by(Message.created_at.asc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def mark_read(self, task_id: UUID, receiver_id: str) -> int:
        """Mark all unread messages addressed to a receiver as read.

        Args:
            task_id: Task UUID
            receiver_id: Receiving user ID

        Returns:
            Number of messages updated
        """
        stmt = (
            update(Message)
            .where(Message.task_id == task_id)
            .where(Message.receiver_id == receiver_id)
            .where(Message.read.is_(False))
            .values(read=True)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount or 0
