"""Shared create/read/update for the marketplace repositories."""

from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Primary-key access to one model.

    Writes flush but never commit; the calling service owns the
    transaction boundary.
    """

    def __init__(self, model: type[ModelType], session: AsyncSession) -> None:
        self.model = model
        self.session = session

    async def create(self, **kwargs: Any) -> ModelType:
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def get_by_id(self, id: Any) -> ModelType | None:
        id_column = self.model.id  # type: ignore[attr-defined]
        result = await self.session.execute(select(self.model).where(id_column == id))
        return result.scalar_one_or_none()

    async def update(self, id: Any, **kwargs: Any) -> ModelType | None:
        """Apply attribute changes to the row with this key.

        Returns:
            The refreshed instance, or None if no row matches
        """
        instance = await self.get_by_id(id)
        if instance is None:
            return None

        for key, value in kwargs.items():
            setattr(instance, key, value)

        await self.session.flush()
        await self.session.refresh(instance)
        return instance
