"""Account registration and lookup service."""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from taskmarket.db.models import User
from taskmarket.db.models.enums import UserRole
from taskmarket.db.repository.user_repo import UserRepository

from ..exceptions import ConflictError, NotFoundError
from ..schemas import UserRegister, UserResponse
from .lifecycle import Actor

logger = structlog.get_logger()


async def require_user(user_repo: UserRepository, user_id: str) -> User:
    """Load the caller's profile.

    Raises:
        NotFoundError: If the caller has not registered a profile
    """
    user = await user_repo.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def actor_for(user: User) -> Actor:
    """Build the lifecycle actor for a loaded user."""
    return Actor(user_id=user.id, role=UserRole(user.role))


class UserService:
    """Creates and reads marketplace profiles.

    Credentials live in the identity provider; this service only stores
    the profile attached to the provider's subject ID.
    """

    def __init__(self, db_session: AsyncSession) -> None:
        """Initialize user service.

        Args:
            db_session: Database session
        """
        self.db = db_session
        self.user_repo = UserRepository(db_session)

    async def register(self, user_id: str, request: UserRegister) -> UserResponse:
        """Create the caller's profile.

        Args:
            user_id: Authenticated subject ID
            request: Profile data

        Returns:
            Created profile

        Raises:
            ConflictError: If the caller or the email is already registered
        """
        if await self.user_repo.get_by_id(user_id) is not None:
            raise ConflictError("User", user_id)
        if await self.user_repo.get_by_email(request.email) is not None:
            raise ConflictError("User", request.email)

        is_expert = request.role == UserRole.EXPERT
        user = await self.user_repo.create(
            id=user_id,
            name=request.name,
            email=request.email,
            role=request.role.value,
            avatar=request.avatar,
            bio=request.bio,
            skills=request.skills if is_expert else [],
            hourly_rate=request.hourly_rate if is_expert else None,
            rating=0.0,
            completed_tasks=0,
            is_available=False,
        )
        await self.db.commit()

        logger.info("user_registered", user_id=user_id, role=request.role.value)

        return UserResponse.model_validate(user)

    async def get_me(self, user_id: str) -> UserResponse:
        """Return the caller's profile."""
        user = await require_user(self.user_repo, user_id)
        return UserResponse.model_validate(user)
