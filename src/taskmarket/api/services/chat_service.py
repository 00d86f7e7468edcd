"""Task chat service."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from taskmarket.db.models.enums import CHAT_OPEN_STATUSES, TaskStatus
from taskmarket.db.repository.message_repo import MessageRepository
from taskmarket.db.repository.task_repo import TaskRepository
from taskmarket.events.types import MessageSentEvent

from ..exceptions import AccessDeniedError, InvalidStateError, NotFoundError
from ..schemas import MarkReadResponse, MessageCreate, MessageResponse

if TYPE_CHECKING:
    from taskmarket.db.models import Task
    from taskmarket.events.bus import EventBus

logger = structlog.get_logger()


class ChatService:
    """Messages between a task's poster and its bound expert.

    Used by both the REST routes and the WebSocket ``send-message`` path,
    so stored messages are the single source for the relay.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        event_bus: EventBus | None = None,
    ) -> None:
        """Initialize chat service.

        Args:
            db_session: Database session
            event_bus: Optional bus receiving post-commit events
        """
        self.db = db_session
        self.event_bus = event_bus
        self.task_repo = TaskRepository(db_session)
        self.message_repo = MessageRepository(db_session)

    async def get_task_for_party(self, task_id: UUID, user_id: str) -> Task:
        """Load a task the caller takes part in.

        Raises:
            NotFoundError: If the task does not exist
            AccessDeniedError: If the caller is neither poster nor bound expert
        """
        task = await self.task_repo.get_by_id(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        if not task.is_party(user_id):
            raise AccessDeniedError("Task", task_id)
        return task

    async def list_messages(self, task_id: UUID, user_id: str) -> list[MessageResponse]:
        """Return the task's chat history, oldest first."""
        await self.get_task_for_party(task_id, user_id)
        messages = await self.message_repo.get_by_task_id(task_id)
        return [MessageResponse.model_validate(m) for m in messages]

    async def send_message(
        self,
        task_id: UUID,
        user_id: str,
        request: MessageCreate,
    ) -> MessageResponse:
        """Store a message from one party to the other.

        Raises:
            NotFoundError: If the task does not exist
            AccessDeniedError: If the caller is not a party
            InvalidStateError: If the task is not accepted or in progress
        """
        task = await self.get_task_for_party(task_id, user_id)

        if TaskStatus(task.status) not in CHAT_OPEN_STATUSES:
            raise InvalidStateError(
                resource="Task",
                current_state=task.status,
                action="chat about",
            )

        receiver_id = task.other_party(user_id)
        if receiver_id is None:
            raise InvalidStateError(
                resource="Task",
                current_state=task.status,
                action="chat about",
            )

        attachment = request.attachment
        message = await self.message_repo.create(
            task_id=task_id,
            sender_id=user_id,
            receiver_id=receiver_id,
            content=request.content,
            read=False,
            attachment_filename=attachment.filename if attachment else None,
            attachment_url=attachment.url if attachment else None,
        )
        await self.db.commit()

        logger.info(
            "message_sent",
            task_id=str(task_id),
            message_id=str(message.id),
            sender_id=user_id,
        )

        if self.event_bus is not None:
            self.event_bus.publish(
                MessageSentEvent(
                    actor_id=user_id,
                    message_id=message.id,
                    task_id=task_id,
                    sender_id=user_id,
                    receiver_id=receiver_id,
                    content=message.content,
                    attachment_filename=message.attachment_filename,
                    attachment_url=message.attachment_url,
                    created_at=message.created_at,
                )
            )

        return MessageResponse.model_validate(message)

    async def mark_read(self, task_id: UUID, user_id: str) -> MarkReadResponse:
        """Mark every message the caller received on this task as read."""
        await self.get_task_for_party(task_id, user_id)
        updated = await self.message_repo.mark_read(task_id, user_id)
        await self.db.commit()

        logger.debug("messages_marked_read", task_id=str(task_id), user_id=user_id, count=updated)

        return MarkReadResponse(task_id=task_id, updated=updated)
