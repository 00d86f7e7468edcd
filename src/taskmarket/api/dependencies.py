"""FastAPI dependencies for dependency injection.

Long-lived collaborators (event bus, connection manager, presence cache)
are created in the application lifespan and stored on ``app.state``.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import HTTPConnection

from taskmarket.cache import PresenceCache
from taskmarket.db.session import get_db_session
from taskmarket.events.bus import EventBus

from .auth import get_current_user_id
from .websocket import ConnectionManager


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Database session dependency.

    Yields:
        AsyncSession for database operations
    """
    async for session in get_db_session():
        yield session


def get_event_bus(conn: HTTPConnection) -> EventBus:
    """Application event bus."""
    return conn.app.state.event_bus


def get_ws_manager(conn: HTTPConnection) -> ConnectionManager:
    """Application WebSocket connection manager."""
    return conn.app.state.ws_manager


def get_presence(conn: HTTPConnection) -> PresenceCache | None:
    """Presence cache, or None when presence tracking is disabled."""
    return getattr(conn.app.state, "presence", None)


# Type aliases for cleaner route signatures
DBSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUserId = Annotated[str, Depends(get_current_user_id)]
AppEventBus = Annotated[EventBus, Depends(get_event_bus)]
WSManager = Annotated[ConnectionManager, Depends(get_ws_manager)]
Presence = Annotated[PresenceCache | None, Depends(get_presence)]
