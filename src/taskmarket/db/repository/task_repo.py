"""Task repository for task-specific operations."""

from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.enums import TaskStatus
from ..models.task import Task
from .base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    """Repository for Task model operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize task repository.

        Args:
            session: Database session
        """
        super().__init__(Task, session)

    async def get_by_poster_id(
        self,
        poster_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Task]:
        """Get tasks created by a poster, newest first.

        Args:
            poster_id: Poster user ID
            limit: Maximum number of tasks to return
            offset: Number of tasks to skip

        Returns:
            List of tasks
        """
        stmt = (
            select(Task)
            .where(Task.poster_id == poster_id)
            .order_by(Task.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_expert_id(
        self,
        expert_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Task]:
        """Get tasks bound to an expert, newest first.

        Args:
            expert_id: Expert user ID
            limit: Maximum number of tasks to return
            offset: Number of tasks to skip

        Returns:
            List of tasks
        """
        stmt = (
            select(Task)
            .where(Task.expert_id == expert_id)
            .order_by(Task.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_pending_tasks(self, limit: int = 200, offset: int = 0) -> list[Task]:
        """Get unassigned tasks, newest first.

        Args:
            limit: Maximum number of tasks to return
            offset: Number of tasks to skip

        Returns:
            List of pending tasks
        """
        stmt = (
            select(Task)
            .where(Task.status == TaskStatus.PENDING.value)
            .order_by(Task.created_at.desc(), Task.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_open_matching(
        self,
        skills: Iterable[str],
        limit: int = 20,
        offset: int = 0,
        batch_size: int = 200,
    ) -> list[Task]:
        """Get pending tasks sharing a category with the given skills.

        Matching is case-insensitive. Category lists are JSON, so pending
        rows are scanned newest first in batches until the requested page
        is filled or the table is exhausted.

        Args:
            skills: Expert skill tags
            limit: Maximum number of matches to return
            offset: Number of matches to skip
            batch_size: Pending rows fetched per query

        Returns:
            Matching tasks, newest first
        """
        wanted = {s.lower() for s in skills}
        if not wanted or limit <= 0:
            return []

        needed = offset + limit
        matches: list[Task] = []
        scanned = 0
        while len(matches) < needed:
            batch = await self.get_pending_tasks(limit=batch_size, offset=scanned)
            matches.extend(
                t for t in batch if wanted.intersection(c.lower() for c in t.category or [])
            )
            if len(batch) < batch_size:
                break
            scanned += batch_size

        return matches[offset:needed]

    async def get_completed_by_expert(self, expert_id: str) -> list[Task]:
        """Get an expert's completed tasks, most recent first.

        Args:
            expert_id: Expert user ID

        Returns:
            List of completed tasks
        """
        stmt = (
            select(Task)
            .where(Task.expert_id == expert_id)
            .where(Task.status == TaskStatus.COMPLETED.value)
            .order_by(Task.completed_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_average_rating(self, expert_id: str) -> float | None:
        """Get the mean review rating of an expert's completed tasks.

        Args:
            expert_id: Expert user ID

        Returns:
            Mean rating or None if no reviews exist
        """
        stmt = (
            select(func.avg(Task.review_rating))
            .where(Task.expert_id == expert_id)
            .where(Task.review_rating.isnot(None))
        )
        result = await self.session.execute(stmt)
        value = result.scalar_one_or_none()
        return float(value) if value is not None else None
