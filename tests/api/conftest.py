"""API test fixtures."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from taskmarket.api.auth import get_current_user_id
from taskmarket.api.dependencies import get_db
from taskmarket.db.models.enums import TaskStatus, UserRole

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


@pytest.fixture
def mock_db() -> AsyncMock:
    """Create mock database session."""
    session = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.execute = AsyncMock()
    return session


@pytest.fixture
def mock_event_bus() -> MagicMock:
    """Create mock event bus."""
    event_bus = MagicMock()
    event_bus.publish = MagicMock(return_value=True)
    event_bus.emit = AsyncMock()
    return event_bus


@pytest.fixture
def test_user_id() -> str:
    """Test user ID."""
    return "test-user-123"


@pytest.fixture
def app(
    mock_db: AsyncMock,
    mock_event_bus: MagicMock,
    test_user_id: str,
) -> FastAPI:
    """Create test FastAPI app with mocked dependencies."""
    from taskmarket.api.main import create_app
    from taskmarket.api.websocket import ConnectionManager

    app = create_app()
    app.state.event_bus = mock_event_bus
    app.state.ws_manager = ConnectionManager()
    app.state.presence = None

    async def override_get_db() -> AsyncGenerator[AsyncMock, None]:
        yield mock_db

    async def override_get_current_user_id() -> str:
        return test_user_id

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user_id] = override_get_current_user_id

    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client."""
    return TestClient(app, raise_server_exceptions=False)


def _build_user(
    user_id: str = "poster-1",
    role: UserRole = UserRole.POSTER,
    **overrides: Any,
) -> MagicMock:
    """Build a user record as repositories return it."""
    now = datetime.now(UTC)
    user = MagicMock()
    user.id = user_id
    user.name = overrides.pop("name", f"User {user_id}")
    user.email = overrides.pop("email", f"{user_id}@example.com")
    user.role = role.value
    user.avatar = None
    user.bio = None
    user.skills = overrides.pop("skills", [])
    user.hourly_rate = None
    user.rating = overrides.pop("rating", 0.0)
    user.completed_tasks = overrides.pop("completed_tasks", 0)
    user.is_available = overrides.pop("is_available", False)
    user.created_at = now
    user.updated_at = now
    for key, value in overrides.items():
        setattr(user, key, value)
    return user


def _build_task(
    status: TaskStatus = TaskStatus.PENDING,
    poster_id: str = "poster-1",
    expert_id: str | None = None,
    **overrides: Any,
) -> MagicMock:
    """Build a task record as repositories return it."""
    now = datetime.now(UTC)
    task = MagicMock()
    task.id = overrides.pop("id", uuid4())
    task.title = "Build a landing page"
    task.description = "Responsive landing page with contact form"
    task.category = overrides.pop("category", ["web"])
    task.budget = Decimal("500.00")
    task.estimated_hours = 20.0
    task.timeline = now
    task.attachments = []
    task.status = status.value
    task.poster_id = poster_id
    task.expert_id = expert_id
    task.assigned_at = None
    task.accepted_at = None
    task.started_at = None
    task.completed_at = None
    task.cancelled_at = None
    task.total_time_seconds = 0
    task.review_rating = None
    task.review_comment = None
    task.reviewed_at = None
    task.created_at = now
    task.updated_at = now
    for key, value in overrides.items():
        setattr(task, key, value)
    task.is_party = lambda user_id: user_id == task.poster_id or (
        task.expert_id is not None and user_id == task.expert_id
    )
    task.other_party = lambda user_id: (
        task.expert_id if user_id == task.poster_id
        else task.poster_id if user_id == task.expert_id
        else None
    )
    return task


def _build_message(task_id: Any, sender_id: str, receiver_id: str, **overrides: Any) -> MagicMock:
    """Build a message record as repositories return it."""
    message = MagicMock()
    message.id = overrides.pop("id", uuid4())
    message.task_id = task_id
    message.sender_id = sender_id
    message.receiver_id = receiver_id
    message.content = overrides.pop("content", "Hello")
    message.read = overrides.pop("read", False)
    message.attachment_filename = overrides.pop("attachment_filename", None)
    message.attachment_url = overrides.pop("attachment_url", None)
    message.created_at = datetime.now(UTC)
    message.updated_at = message.created_at
    return message


@pytest.fixture
def make_user() -> Any:
    """Factory for user records."""
    return _build_user


@pytest.fixture
def make_task() -> Any:
    """Factory for task records."""
    return _build_task


@pytest.fixture
def make_message() -> Any:
    """Factory for message records."""
    return _build_message
