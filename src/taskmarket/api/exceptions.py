"""Marketplace errors raised by services and rendered by the API handlers.

Every error carries a stable machine-readable ``code`` which is also what
WebSocket ``error`` frames report back to clients.
"""

from typing import Any, ClassVar

from fastapi import HTTPException


class APIError(HTTPException):
    """Base marketplace error.

    Subclasses pin ``default_code`` and ``default_status``; the base class
    accepts both explicitly for one-off errors.
    """

    default_code: ClassVar[str] = "API_ERROR"
    default_status: ClassVar[int] = 400

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status_code: int | None = None,
        detail: str | None = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        super().__init__(
            status_code=status_code or self.default_status,
            detail={"message": message, "code": self.code, "detail": detail},
        )


class NotFoundError(APIError):
    """A task, user or expert id that does not resolve."""

    default_code = "NOT_FOUND"
    default_status = 404

    def __init__(self, resource: str, resource_id: Any) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(
            f"{resource} not found",
            detail=f"{resource} with id '{resource_id}' does not exist",
        )


class AuthenticationError(APIError):
    """Missing or unverifiable caller identity."""

    default_code = "AUTHENTICATION_ERROR"
    default_status = 401

    def __init__(self, message: str = "Not authenticated", detail: str | None = None) -> None:
        super().__init__(message, detail=detail)


class AccessDeniedError(APIError):
    """Role or ownership mismatch.

    Args:
        resource: Resource type
        resource_id: Resource identifier
        reason: Replaces the generic "no access" detail when given
    """

    default_code = "ACCESS_DENIED"
    default_status = 403

    def __init__(self, resource: str, resource_id: Any, reason: str | None = None) -> None:
        super().__init__(
            "Access denied",
            detail=reason or f"You do not have access to {resource} '{resource_id}'",
        )


class InvalidStateError(APIError):
    """Lifecycle action attempted from a status that does not allow it."""

    default_code = "INVALID_STATE"
    default_status = 400

    def __init__(self, resource: str, current_state: str, action: str) -> None:
        self.current_state = current_state
        self.action = action
        super().__init__(
            f"Cannot {action} {resource} in '{current_state}' state",
            detail=f"The {resource} is in '{current_state}' state and cannot be {action}",
        )


class ValidationError(APIError):
    """Request content the marketplace refuses (bad rating, self-assignment)."""

    default_code = "VALIDATION_ERROR"
    default_status = 422

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message, detail=detail)


class ConflictError(APIError):
    """Duplicate registration."""

    default_code = "CONFLICT"
    default_status = 409

    def __init__(self, resource: str, identifier: str, detail: str | None = None) -> None:
        super().__init__(
            f"{resource} already exists",
            detail=detail or f"{resource} with identifier '{identifier}' already exists",
        )
