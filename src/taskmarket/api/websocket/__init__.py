"""WebSocket support for real-time notifications."""

from .handlers import WebSocketHandler
from .manager import Connection, ConnectionManager

__all__ = [
    "Connection",
    "ConnectionManager",
    "WebSocketHandler",
]
