"""Task chat endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from ..dependencies import AppEventBus, CurrentUserId, DBSession
from ..schemas import MarkReadResponse, MessageCreate, MessageResponse
from ..services import ChatService

router = APIRouter(prefix="/chat", tags=["chat"])


@router.get(
    "/{task_id}",
    response_model=list[MessageResponse],
    summary="Get task chat history",
)
async def list_messages(
    task_id: UUID,
    db: DBSession,
    user_id: CurrentUserId,
) -> list[MessageResponse]:
    """Get all messages on a task, oldest first.

    Args:
        task_id: Task UUID
        db: Database session
        user_id: Current user ID

    Returns:
        Chat history
    """
    service = ChatService(db)
    return await service.list_messages(task_id, user_id)


@router.post(
    "/{task_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a chat message",
)
async def send_message(
    task_id: UUID,
    request: MessageCreate,
    db: DBSession,
    event_bus: AppEventBus,
    user_id: CurrentUserId,
) -> MessageResponse:
    """Send a message to the other party of an accepted or in-progress task.

    Args:
        task_id: Task UUID
        request: Message content and optional attachment
        db: Database session
        event_bus: EventBus for real-time notifications
        user_id: Current user ID

    Returns:
        Stored message
    """
    service = ChatService(db, event_bus)
    return await service.send_message(task_id, user_id, request)


@router.patch(
    "/{task_id}/read",
    response_model=MarkReadResponse,
    summary="Mark received messages read",
)
async def mark_read(
    task_id: UUID,
    db: DBSession,
    user_id: CurrentUserId,
) -> MarkReadResponse:
    """Mark every message the caller received on this task as read."""
    service = ChatService(db)
    return await service.mark_read(task_id, user_id)
