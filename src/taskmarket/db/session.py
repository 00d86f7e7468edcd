"""Engine and session lifecycle for the marketplace database."""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .models.base import Base


class DatabaseSessionManager:
    """Holds the async engine and the session factory built on it.

    PostgreSQL (asyncpg) is the deployment target; SQLite (aiosqlite) is
    accepted for local runs and end-to-end tests, where pool options do
    not apply.
    """

    def __init__(
        self,
        database_url: str,
        pool_size: int = 10,
        max_overflow: int = 20,
        **engine_kwargs: Any,
    ) -> None:
        if not database_url.startswith("sqlite"):
            engine_kwargs.setdefault("pool_size", pool_size)
            engine_kwargs.setdefault("max_overflow", max_overflow)
            engine_kwargs.setdefault("pool_recycle", 3600)

        self.engine: AsyncEngine = create_async_engine(
            database_url,
            pool_pre_ping=True,
            **engine_kwargs,
        )
        # Rows stay readable after commit so services can publish from them
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
            autoflush=False,
        )

    async def close(self) -> None:
        await self.engine.dispose()

    async def create_all(self) -> None:
        """Create the marketplace tables directly, bypassing Alembic."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)


_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **engine_kwargs: Any) -> DatabaseSessionManager:
    """Create the process-wide manager.

    Raises:
        RuntimeError: If called twice without close_db() in between
    """
    global _manager
    if _manager is not None:
        raise RuntimeError("Database already initialized")
    _manager = DatabaseSessionManager(database_url, **engine_kwargs)
    return _manager


async def close_db() -> None:
    global _manager
    if _manager is not None:
        await _manager.close()
        _manager = None


def get_session_manager() -> DatabaseSessionManager:
    """Return the process-wide manager.

    Raises:
        RuntimeError: If init_db() has not run
    """
    if _manager is None:
        raise RuntimeError("Database not initialized; call init_db() during startup")
    return _manager


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield one session, rolled back if the caller raises."""
    async with get_session_manager().session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
