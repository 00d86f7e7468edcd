"""Enums for database models."""

from enum import Enum


class UserRole(str, Enum):
    """Account role, fixed at registration."""

    POSTER = "poster"
    EXPERT = "expert"


class TaskStatus(str, Enum):
    """Task lifecycle status."""

    PENDING = "pending"
    ASSIGNED = "assigned"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


# Statuses in which a task carries a bound expert
EXPERT_BOUND_STATUSES = frozenset(
    {
        TaskStatus.ASSIGNED,
        TaskStatus.ACCEPTED,
        TaskStatus.IN_PROGRESS,
        TaskStatus.COMPLETED,
        TaskStatus.REJECTED,
    }
)

TERMINAL_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.CANCELLED})

# Chat is open only while work is agreed and ongoing
CHAT_OPEN_STATUSES = frozenset({TaskStatus.ACCEPTED, TaskStatus.IN_PROGRESS})
