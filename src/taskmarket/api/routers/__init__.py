"""API routers for endpoint organization."""

from .auth import router as auth_router
from .chat import router as chat_router
from .experts import router as experts_router
from .health import router as health_router
from .tasks import router as tasks_router
from .websocket import router as websocket_router

__all__ = [
    "auth_router",
    "chat_router",
    "experts_router",
    "health_router",
    "tasks_router",
    "websocket_router",
]
