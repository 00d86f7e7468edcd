"""Expert directory, availability and profile service."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from taskmarket.db.models.enums import UserRole
from taskmarket.db.repository.task_repo import TaskRepository
from taskmarket.db.repository.user_repo import UserRepository
from taskmarket.events.types import AvailabilityChangedEvent

from ..exceptions import AccessDeniedError, NotFoundError, ValidationError
from ..schemas import (
    ExpertProfileResponse,
    ExpertProfileUpdate,
    ExpertResponse,
    PastProjectResponse,
    UserResponse,
)
from .user_service import require_user

if TYPE_CHECKING:
    from taskmarket.cache import PresenceCache
    from taskmarket.db.models import User
    from taskmarket.events.bus import EventBus

logger = structlog.get_logger()


class ExpertService:
    """Expert-facing profile operations and the public expert directory."""

    def __init__(
        self,
        db_session: AsyncSession,
        event_bus: EventBus | None = None,
        presence: PresenceCache | None = None,
    ) -> None:
        """Initialize expert service.

        Args:
            db_session: Database session
            event_bus: Optional bus receiving post-commit events
            presence: Optional online-presence cache
        """
        self.db = db_session
        self.event_bus = event_bus
        self.presence = presence
        self.user_repo = UserRepository(db_session)
        self.task_repo = TaskRepository(db_session)

    async def list_available(self) -> list[ExpertResponse]:
        """Experts currently accepting work."""
        experts = await self.user_repo.get_available_experts()
        return [ExpertResponse.model_validate(e) for e in experts]

    async def list_online(self) -> list[ExpertResponse]:
        """Available experts with a live WebSocket session."""
        if self.presence is None:
            return []

        experts = await self.user_repo.get_available_experts()
        online = await self.presence.online_among([e.id for e in experts])
        return [ExpertResponse.model_validate(e) for e in experts if e.id in online]

    async def get_profile(self, expert_id: str) -> ExpertProfileResponse:
        """Public profile with completed projects.

        Raises:
            NotFoundError: If no expert has this ID
        """
        expert = await self.user_repo.get_expert(expert_id)
        if expert is None:
            raise NotFoundError("Expert", expert_id)

        completed = await self.task_repo.get_completed_by_expert(expert_id)

        return ExpertProfileResponse(
            expert=ExpertResponse.model_validate(expert),
            past_projects=[PastProjectResponse.model_validate(t) for t in completed],
        )

    async def set_availability(self, user_id: str, is_available: bool) -> UserResponse:
        """Toggle whether the caller accepts new work.

        Raises:
            AccessDeniedError: If the caller is not an expert
        """
        expert = await self._require_expert(user_id, "update availability")

        updated = await self.user_repo.update(user_id, is_available=is_available)
        if updated is None:
            raise NotFoundError("User", user_id)
        await self.db.commit()

        logger.info("expert_availability_changed", expert_id=user_id, is_available=is_available)

        if self.event_bus is not None:
            self.event_bus.publish(
                AvailabilityChangedEvent(
                    actor_id=user_id,
                    expert_id=user_id,
                    name=expert.name,
                    is_available=is_available,
                    skills=list(updated.skills or []),
                    rating=updated.rating or 0.0,
                )
            )

        return UserResponse.model_validate(updated)

    async def update_profile(self, user_id: str, request: ExpertProfileUpdate) -> UserResponse:
        """Update the caller's skills, bio, hourly rate or avatar.

        Raises:
            AccessDeniedError: If the caller is not an expert
            ValidationError: If the request changes nothing
        """
        await self._require_expert(user_id, "update profile")

        updates = request.model_dump(exclude_unset=True)
        if not updates:
            raise ValidationError("Invalid updates", detail="No profile fields provided")

        updated = await self.user_repo.update(user_id, **updates)
        if updated is None:
            raise NotFoundError("User", user_id)
        await self.db.commit()

        logger.info("expert_profile_updated", expert_id=user_id, fields=sorted(updates))

        return UserResponse.model_validate(updated)

    async def _require_expert(self, user_id: str, action: str) -> User:
        user = await require_user(self.user_repo, user_id)
        if user.role != UserRole.EXPERT.value:
            raise AccessDeniedError(
                "User",
                user_id,
                reason=f"Only experts can {action}",
            )
        return user
