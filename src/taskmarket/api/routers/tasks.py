"""Task management endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from ..dependencies import AppEventBus, CurrentUserId, DBSession
from ..schemas import (
    PaginatedResponse,
    TaskAssign,
    TaskCreate,
    TaskResponse,
    TaskReview,
    TaskStatusUpdate,
)
from ..services import TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post a task",
)
async def create_task(
    request: TaskCreate,
    db: DBSession,
    user_id: CurrentUserId,
) -> TaskResponse:
    """Post a new task. Only posters can create tasks.

    Args:
        request: Task creation request
        db: Database session
        user_id: Current user ID

    Returns:
        Created task in pending status
    """
    service = TaskService(db)
    return await service.create_task(user_id, request)


@router.get(
    "/mine",
    response_model=PaginatedResponse[TaskResponse],
    summary="List own tasks",
)
async def list_my_tasks(
    db: DBSession,
    user_id: CurrentUserId,
    limit: int = Query(default=20, ge=1),
    offset: int = Query(default=0, ge=0),
) -> PaginatedResponse[TaskResponse]:
    """List tasks the caller posted, or for experts, the tasks bound to them.

    Args:
        db: Database session
        user_id: Current user ID
        limit: Maximum results per page
        offset: Offset for pagination

    Returns:
        Paginated list of tasks, newest first
    """
    service = TaskService(db)
    return await service.list_my_tasks(user_id, limit=min(limit, 100), offset=offset)


@router.get(
    "/open",
    response_model=PaginatedResponse[TaskResponse],
    summary="List open tasks matching own skills",
)
async def list_open_tasks(
    db: DBSession,
    user_id: CurrentUserId,
    limit: int = Query(default=20, ge=1),
    offset: int = Query(default=0, ge=0),
) -> PaginatedResponse[TaskResponse]:
    """List pending tasks whose categories overlap the expert's skills."""
    service = TaskService(db)
    return await service.list_open_tasks(user_id, limit=min(limit, 100), offset=offset)


@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Get task details",
)
async def get_task(
    task_id: UUID,
    db: DBSession,
    user_id: CurrentUserId,
) -> TaskResponse:
    """Get a task. Visible to its poster and bound expert.

    Args:
        task_id: Task UUID
        db: Database session
        user_id: Current user ID

    Returns:
        Task details
    """
    service = TaskService(db)
    return await service.get_task(task_id, user_id)


@router.patch(
    "/{task_id}/status",
    response_model=TaskResponse,
    summary="Change task status",
)
async def update_task_status(
    task_id: UUID,
    request: TaskStatusUpdate,
    db: DBSession,
    event_bus: AppEventBus,
    user_id: CurrentUserId,
) -> TaskResponse:
    """Move a task along its lifecycle.

    Accepted targets: accepted, rejected, in-progress, completed
    (assigned expert) and cancelled (either party).

    Args:
        task_id: Task UUID
        request: Target status
        db: Database session
        event_bus: EventBus for real-time notifications
        user_id: Current user ID

    Returns:
        Updated task
    """
    service = TaskService(db, event_bus)
    return await service.update_status(task_id, user_id, request.status)


@router.patch(
    "/{task_id}/assign",
    response_model=TaskResponse,
    summary="Assign task to an expert",
)
async def assign_task(
    task_id: UUID,
    request: TaskAssign,
    db: DBSession,
    event_bus: AppEventBus,
    user_id: CurrentUserId,
) -> TaskResponse:
    """Bind an expert to a pending or rejected task.

    Args:
        task_id: Task UUID
        request: Expert to assign
        db: Database session
        event_bus: EventBus for real-time notifications
        user_id: Current user ID

    Returns:
        Updated task in assigned status
    """
    service = TaskService(db, event_bus)
    return await service.assign_task(task_id, user_id, request.expert_id)


@router.post(
    "/{task_id}/review",
    response_model=TaskResponse,
    summary="Review a completed task",
)
async def review_task(
    task_id: UUID,
    request: TaskReview,
    db: DBSession,
    user_id: CurrentUserId,
) -> TaskResponse:
    """Rate the expert's work on a completed task. Allowed once."""
    service = TaskService(db)
    return await service.review_task(
        task_id,
        user_id,
        rating=request.rating,
        comment=request.comment,
    )
