"""Event handlers subscribed on the EventBus."""

from .logging_handler import LoggingEventHandler
from .websocket_handler import WebSocketEventHandler

__all__ = [
    "LoggingEventHandler",
    "WebSocketEventHandler",
]
