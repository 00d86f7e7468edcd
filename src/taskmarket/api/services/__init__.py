"""API service layer."""

from .chat_service import ChatService
from .expert_service import ExpertService
from .lifecycle import Actor, TaskAction, TaskLifecycle
from .task_service import TaskService
from .user_service import UserService

__all__ = [
    "Actor",
    "ChatService",
    "ExpertService",
    "TaskAction",
    "TaskLifecycle",
    "TaskService",
    "UserService",
]
