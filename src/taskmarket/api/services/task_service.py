"""Task management service."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from taskmarket.db.models.enums import TaskStatus, UserRole
from taskmarket.db.repository.task_repo import TaskRepository
from taskmarket.db.repository.user_repo import UserRepository
from taskmarket.events.types import Event, TaskAssignedEvent, TaskStatusUpdatedEvent

from ..exceptions import AccessDeniedError, NotFoundError
from ..schemas import PaginatedResponse, TaskCreate, TaskResponse
from .lifecycle import TaskAction, TaskLifecycle
from .user_service import actor_for, require_user

if TYPE_CHECKING:
    from taskmarket.db.models import Task
    from taskmarket.events.bus import EventBus

logger = structlog.get_logger()


class TaskService:
    """Task creation, listing and lifecycle transitions.

    Every change is committed before the matching event is published,
    so the relay only ever reports persisted state.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        event_bus: EventBus | None = None,
        lifecycle: TaskLifecycle | None = None,
    ) -> None:
        """Initialize task service.

        Args:
            db_session: Database session
            event_bus: Optional bus receiving post-commit events
            lifecycle: Transition rules (default TaskLifecycle)
        """
        self.db = db_session
        self.event_bus = event_bus
        self.lifecycle = lifecycle or TaskLifecycle()
        self.task_repo = TaskRepository(db_session)
        self.user_repo = UserRepository(db_session)

    async def create_task(self, user_id: str, request: TaskCreate) -> TaskResponse:
        """Post a new task in pending status.

        Raises:
            NotFoundError: If the caller has no profile
            AccessDeniedError: If the caller is not a poster
        """
        user = await require_user(self.user_repo, user_id)
        self.lifecycle.check_can_create(actor_for(user))

        timeline = request.timeline
        if timeline.tzinfo is None:
            timeline = timeline.replace(tzinfo=UTC)
        uploaded_at = datetime.now(UTC).isoformat()

        task = await self.task_repo.create(
            title=request.title,
            description=request.description,
            category=request.category,
            budget=request.budget,
            estimated_hours=request.estimated_hours,
            timeline=timeline,
            attachments=[
                {**a.model_dump(), "upload_date": uploaded_at} for a in request.attachments
            ],
            status=TaskStatus.PENDING.value,
            poster_id=user_id,
            expert_id=None,
            total_time_seconds=0,
        )
        await self.db.commit()

        logger.info("task_created", task_id=str(task.id), poster_id=user_id)

        return TaskResponse.model_validate(task)

    async def get_task(self, task_id: UUID, user_id: str) -> TaskResponse:
        """Get a task visible to one of its parties."""
        task = await self._get_task(task_id)
        if not task.is_party(user_id):
            raise AccessDeniedError("Task", task_id)
        return TaskResponse.model_validate(task)

    async def list_my_tasks(
        self,
        user_id: str,
        limit: int = 20,
        offset: int = 0,
    ) -> PaginatedResponse[TaskResponse]:
        """List tasks the caller posted (posters) or is bound to (experts)."""
        user = await require_user(self.user_repo, user_id)

        if user.role == UserRole.EXPERT.value:
            tasks = await self.task_repo.get_by_expert_id(user_id, limit=limit + 1, offset=offset)
        else:
            tasks = await self.task_repo.get_by_poster_id(user_id, limit=limit + 1, offset=offset)

        return self._paginate(tasks, limit, offset)

    async def list_open_tasks(
        self,
        user_id: str,
        limit: int = 20,
        offset: int = 0,
    ) -> PaginatedResponse[TaskResponse]:
        """List pending tasks whose categories match the expert's skills.

        Raises:
            AccessDeniedError: If the caller is not an expert
        """
        user = await require_user(self.user_repo, user_id)
        if user.role != UserRole.EXPERT.value:
            raise AccessDeniedError(
                "Task",
                "open",
                reason="Only experts can browse open tasks",
            )

        matching = await self.task_repo.get_open_matching(
            user.skills or [], limit=limit + 1, offset=offset
        )

        return self._paginate(matching, limit, offset)

    async def update_status(
        self,
        task_id: UUID,
        user_id: str,
        status: TaskStatus,
    ) -> TaskResponse:
        """Apply a status transition requested by a party.

        Raises:
            ValidationError: If the status cannot be requested directly
            NotFoundError: If the task or caller profile does not exist
            AccessDeniedError: If the caller may not make this transition
            InvalidStateError: If the transition is illegal from the current status
        """
        action = self.lifecycle.action_for_status(status)
        user = await require_user(self.user_repo, user_id)
        task = await self._get_task(task_id)

        previous_status = task.status
        bound_expert = task.expert_id
        changes = self.lifecycle.plan(task, actor_for(user), action)

        updated = await self.task_repo.update(task_id, **changes)
        if updated is None:
            raise NotFoundError("Task", task_id)

        if action == TaskAction.COMPLETE and bound_expert is not None:
            expert = await self.user_repo.get_by_id(bound_expert)
            if expert is not None:
                await self.user_repo.update(
                    bound_expert,
                    completed_tasks=(expert.completed_tasks or 0) + 1,
                )

        await self.db.commit()

        logger.info(
            "task_status_updated",
            task_id=str(task_id),
            action=action.value,
            previous_status=previous_status,
            status=updated.status,
            actor_id=user_id,
        )

        self._publish(
            TaskStatusUpdatedEvent(
                actor_id=user_id,
                task_id=task_id,
                status=TaskStatus(updated.status),
                previous_status=TaskStatus(previous_status),
                poster_id=updated.poster_id,
                expert_id=bound_expert,
            )
        )

        return TaskResponse.model_validate(updated)

    async def assign_task(
        self,
        task_id: UUID,
        user_id: str,
        expert_id: str,
    ) -> TaskResponse:
        """Bind an expert to a pending (or rejected) task.

        Raises:
            NotFoundError: If the task, caller profile or expert does not exist
            AccessDeniedError: If the caller does not own the task
            InvalidStateError: If the task already has an active assignment
            ValidationError: If the poster names themselves
        """
        user = await require_user(self.user_repo, user_id)
        task = await self._get_task(task_id)

        changes = self.lifecycle.plan(task, actor_for(user), TaskAction.ASSIGN, expert_id=expert_id)

        expert = await self.user_repo.get_expert(expert_id)
        if expert is None:
            raise NotFoundError("Expert", expert_id)

        updated = await self.task_repo.update(task_id, **changes)
        if updated is None:
            raise NotFoundError("Task", task_id)
        await self.db.commit()

        logger.info(
            "task_assigned",
            task_id=str(task_id),
            expert_id=expert_id,
            poster_id=user_id,
        )

        self._publish(
            TaskAssignedEvent(
                actor_id=user_id,
                task_id=task_id,
                title=updated.title,
                poster_id=updated.poster_id,
                expert_id=expert_id,
                budget=updated.budget,
                timeline=updated.timeline,
            )
        )

        return TaskResponse.model_validate(updated)

    async def review_task(
        self,
        task_id: UUID,
        user_id: str,
        rating: int,
        comment: str | None = None,
    ) -> TaskResponse:
        """Attach the poster's review to a completed task.

        The expert's rating becomes the mean of all their reviews.
        """
        user = await require_user(self.user_repo, user_id)
        task = await self._get_task(task_id)

        changes = self.lifecycle.plan(
            task,
            actor_for(user),
            TaskAction.REVIEW,
            rating=rating,
            comment=comment,
        )

        updated = await self.task_repo.update(task_id, **changes)
        if updated is None:
            raise NotFoundError("Task", task_id)

        if updated.expert_id is not None:
            average = await self.task_repo.get_average_rating(updated.expert_id)
            if average is not None:
                await self.user_repo.update(updated.expert_id, rating=round(average, 2))

        await self.db.commit()

        logger.info(
            "task_reviewed",
            task_id=str(task_id),
            expert_id=updated.expert_id,
            rating=rating,
        )

        return TaskResponse.model_validate(updated)

    async def _get_task(self, task_id: UUID) -> Task:
        task = await self.task_repo.get_by_id(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    def _paginate(
        self,
        tasks: list[Task],
        limit: int,
        offset: int,
    ) -> PaginatedResponse[TaskResponse]:
        has_more = len(tasks) > limit
        if has_more:
            tasks = tasks[:limit]

        return PaginatedResponse(
            items=[TaskResponse.model_validate(t) for t in tasks],
            total=len(tasks),
            limit=limit,
            offset=offset,
            has_more=has_more,
        )

    def _publish(self, event: Event) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event)
