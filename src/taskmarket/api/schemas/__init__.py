"""Pydantic schemas for API request/response validation."""

from .requests import (
    AttachmentRef,
    AvailabilityUpdate,
    ExpertProfileUpdate,
    MessageCreate,
    TaskAssign,
    TaskCreate,
    TaskReview,
    TaskStatusUpdate,
    UserRegister,
)
from .responses import (
    ErrorResponse,
    ExpertProfileResponse,
    ExpertResponse,
    MarkReadResponse,
    MessageResponse,
    PaginatedResponse,
    PastProjectResponse,
    TaskResponse,
    UserResponse,
)
from .websocket import (
    AvailabilityChangedPayload,
    NewMessagePayload,
    TaskAssignedPayload,
    TaskStatusUpdatedPayload,
    WSMessage,
    WSMessageType,
)

__all__ = [
    # Requests
    "AttachmentRef",
    "UserRegister",
    "TaskCreate",
    "TaskStatusUpdate",
    "TaskAssign",
    "TaskReview",
    "MessageCreate",
    "AvailabilityUpdate",
    "ExpertProfileUpdate",
    # Responses
    "UserResponse",
    "ExpertResponse",
    "ExpertProfileResponse",
    "PastProjectResponse",
    "TaskResponse",
    "MessageResponse",
    "MarkReadResponse",
    "PaginatedResponse",
    "ErrorResponse",
    # WebSocket
    "WSMessageType",
    "WSMessage",
    "AvailabilityChangedPayload",
    "TaskAssignedPayload",
    "TaskStatusUpdatedPayload",
    "NewMessagePayload",
]
