"""User repository for identity and expert profile operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.enums import UserRole
from ..models.user import User
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User model operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository.

        Args:
            session: Database session
        """
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> User | None:
        """Get user by email address.

        Args:
            email: Email address

        Returns:
            User or None if not found
        """
        stmt = select(User).where(User.email == email)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_expert(self, user_id: str) -> User | None:
        """Get a user only if it has the expert role.

        Args:
            user_id: User identifier

        Returns:
            Expert user or None
        """
        stmt = select(User).where(User.id == user_id).where(User.role == UserRole.EXPERT.value)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_available_experts(
        self,
        user_ids: list[str] | None = None,
    ) -> list[User]:
        """Get experts currently accepting work, best rated first.

        Args:
            user_ids: Optional restriction to these user IDs

        Returns:
            List of available experts
        """
        stmt = (
            select(User)
            .where(User.role == UserRole.EXPERT.value)
            .where(User.is_available.is_(True))
            .order_by(User.rating.desc(), User.name.asc())
        )
        if user_ids is not None:
            stmt = stmt.where(User.id.in_(user_ids))

        result = await self.session.execute(stmt)
        return list(result.scalars().all())
