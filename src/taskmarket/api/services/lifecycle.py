"""Task lifecycle state machine.

Validates who may move a task between statuses and computes the field
changes each transition writes. Storage-free: callers load the task,
ask for a plan and persist the returned changes themselves.

    pending -> assigned -> accepted -> in-progress -> completed
                  |  \\
                  |   -> rejected -> assigned (re-assign)
                  v
    any non-terminal status -> cancelled
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Protocol

from taskmarket.db.models.enums import TERMINAL_STATUSES, TaskStatus, UserRole

from ..exceptions import AccessDeniedError, InvalidStateError, ValidationError


class TaskAction(StrEnum):
    """Operations that change a task after creation."""

    ASSIGN = "assign"
    ACCEPT = "accept"
    REJECT = "reject"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"
    REVIEW = "review"


class Performer(StrEnum):
    """Which party of a task may perform an action."""

    POSTER = "poster"
    EXPERT = "expert"
    EITHER = "either"


class TaskLike(Protocol):
    """Task fields the lifecycle reads."""

    id: Any
    status: str
    poster_id: str
    expert_id: str | None
    started_at: datetime | None
    review_rating: int | None


@dataclass(frozen=True)
class Actor:
    """Authenticated caller acting on a task."""

    user_id: str
    role: UserRole


@dataclass(frozen=True)
class Transition:
    """Static rule for one action."""

    action: TaskAction
    performer: Performer
    allowed_from: frozenset[TaskStatus]
    target: TaskStatus | None = None


_NON_TERMINAL = frozenset(TaskStatus) - TERMINAL_STATUSES

TRANSITIONS: dict[TaskAction, Transition] = {
    TaskAction.ASSIGN: Transition(
        TaskAction.ASSIGN,
        Performer.POSTER,
        frozenset({TaskStatus.PENDING, TaskStatus.REJECTED}),
        TaskStatus.ASSIGNED,
    ),
    TaskAction.ACCEPT: Transition(
        TaskAction.ACCEPT,
        Performer.EXPERT,
        frozenset({TaskStatus.ASSIGNED}),
        TaskStatus.ACCEPTED,
    ),
    TaskAction.REJECT: Transition(
        TaskAction.REJECT,
        Performer.EXPERT,
        frozenset({TaskStatus.ASSIGNED}),
        TaskStatus.REJECTED,
    ),
    TaskAction.START: Transition(
        TaskAction.START,
        Performer.EXPERT,
        frozenset({TaskStatus.ACCEPTED}),
        TaskStatus.IN_PROGRESS,
    ),
    TaskAction.COMPLETE: Transition(
        TaskAction.COMPLETE,
        Performer.EXPERT,
        frozenset({TaskStatus.IN_PROGRESS}),
        TaskStatus.COMPLETED,
    ),
    TaskAction.CANCEL: Transition(
        TaskAction.CANCEL,
        Performer.EITHER,
        _NON_TERMINAL,
        TaskStatus.CANCELLED,
    ),
    TaskAction.REVIEW: Transition(
        TaskAction.REVIEW,
        Performer.POSTER,
        frozenset({TaskStatus.COMPLETED}),
    ),
}

# Target status accepted by the generic status endpoint -> action
STATUS_ACTIONS: dict[TaskStatus, TaskAction] = {
    TaskStatus.ACCEPTED: TaskAction.ACCEPT,
    TaskStatus.REJECTED: TaskAction.REJECT,
    TaskStatus.IN_PROGRESS: TaskAction.START,
    TaskStatus.COMPLETED: TaskAction.COMPLETE,
    TaskStatus.CANCELLED: TaskAction.CANCEL,
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


class TaskLifecycle:
    """Authorizes transitions and computes the resulting field changes."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        """Initialize lifecycle.

        Args:
            clock: Source of transition timestamps
        """
        self._clock = clock

    def check_can_create(self, actor: Actor) -> None:
        """Only posters create tasks.

        Raises:
            AccessDeniedError: If the actor is an expert
        """
        if actor.role != UserRole.POSTER:
            raise AccessDeniedError(
                "Task",
                "new",
                reason="Only posters can create tasks",
            )

    def action_for_status(self, status: TaskStatus | str) -> TaskAction:
        """Map a requested target status onto a lifecycle action.

        Raises:
            ValidationError: If the status cannot be requested directly
        """
        try:
            return STATUS_ACTIONS[TaskStatus(status)]
        except (KeyError, ValueError):
            raise ValidationError(
                f"Status '{status}' cannot be set directly",
                detail="Allowed: " + ", ".join(s.value for s in STATUS_ACTIONS),
            ) from None

    def authorize(self, task: TaskLike, actor: Actor, action: TaskAction) -> None:
        """Check the actor may perform the action on this task.

        The actor must be a party of the task (its poster or bound expert),
        and the party that the action belongs to.

        Raises:
            AccessDeniedError: On ownership or role mismatch
        """
        is_poster = actor.user_id == task.poster_id
        is_expert = task.expert_id is not None and actor.user_id == task.expert_id

        if not (is_poster or is_expert):
            raise AccessDeniedError("Task", task.id)

        performer = TRANSITIONS[action].performer
        if performer == Performer.POSTER and not is_poster:
            raise AccessDeniedError(
                "Task",
                task.id,
                reason=f"Only the task's poster can {action.value} it",
            )
        if performer == Performer.EXPERT and not is_expert:
            raise AccessDeniedError(
                "Task",
                task.id,
                reason=f"Only the assigned expert can {action.value} this task",
            )

    def plan(
        self,
        task: TaskLike,
        actor: Actor,
        action: TaskAction,
        *,
        expert_id: str | None = None,
        rating: int | None = None,
        comment: str | None = None,
    ) -> dict[str, Any]:
        """Validate a transition and return the changes to persist.

        Args:
            task: Current task state
            actor: Caller
            action: Requested action
            expert_id: Expert to bind (ASSIGN)
            rating: Review rating 1-5 (REVIEW)
            comment: Review text (REVIEW)

        Returns:
            Field name -> new value

        Raises:
            AccessDeniedError: If the actor may not perform the action
            InvalidStateError: If the action is not legal from the current status
            ValidationError: If action arguments are missing or malformed
        """
        self.authorize(task, actor, action)

        transition = TRANSITIONS[action]
        current = TaskStatus(task.status)
        if current not in transition.allowed_from:
            raise InvalidStateError(
                resource="Task",
                current_state=current.value,
                action=action.value,
            )

        now = self._clock()
        match action:
            case TaskAction.ASSIGN:
                return self._assign(task, expert_id, now)
            case TaskAction.REVIEW:
                return self._review(task, rating, comment, now)
            case TaskAction.ACCEPT:
                return {"status": TaskStatus.ACCEPTED.value, "accepted_at": now}
            case TaskAction.REJECT:
                return {"status": TaskStatus.REJECTED.value}
            case TaskAction.START:
                return {"status": TaskStatus.IN_PROGRESS.value, "started_at": now}
            case TaskAction.COMPLETE:
                elapsed = 0
                if task.started_at is not None:
                    elapsed = max(0, int((now - _as_utc(task.started_at)).total_seconds()))
                return {
                    "status": TaskStatus.COMPLETED.value,
                    "completed_at": now,
                    "total_time_seconds": elapsed,
                }
            case TaskAction.CANCEL:
                return {
                    "status": TaskStatus.CANCELLED.value,
                    "cancelled_at": now,
                    "expert_id": None,
                }

    def _assign(self, task: TaskLike, expert_id: str | None, now: datetime) -> dict[str, Any]:
        if not expert_id:
            raise ValidationError("expert_id is required")
        if expert_id == task.poster_id:
            raise ValidationError("A poster cannot assign a task to themselves")

        return {
            "status": TaskStatus.ASSIGNED.value,
            "expert_id": expert_id,
            "assigned_at": now,
            "accepted_at": None,
            "started_at": None,
        }

    def _review(
        self,
        task: TaskLike,
        rating: int | None,
        comment: str | None,
        now: datetime,
    ) -> dict[str, Any]:
        if rating is None or not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")
        if task.review_rating is not None:
            raise InvalidStateError(
                resource="Task",
                current_state="reviewed",
                action="review",
            )

        return {
            "review_rating": rating,
            "review_comment": comment,
            "reviewed_at": now,
        }
