"""Database repository layer."""

from .base import BaseRepository
from .message_repo import MessageRepository
from .task_repo import TaskRepository
from .user_repo import UserRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "TaskRepository",
    "MessageRepository",
]
