"""Database models for the task marketplace."""

from .base import Base
from .enums import TaskStatus, UserRole
from .message import Message
from .task import Task
from .user import User

__all__ = [
    "Base",
    "User",
    "Task",
    "Message",
    "TaskStatus",
    "UserRole",
]
