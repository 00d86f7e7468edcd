"""Global exception handlers for FastAPI."""

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from .exceptions import APIError
from .schemas import ErrorResponse

logger = structlog.get_logger()


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def _error_response(
    status_code: int,
    error: str,
    code: str,
    request_id: str,
    detail: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error,
            detail=detail,
            code=code,
            request_id=request_id,
        ).model_dump(),
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
        """Render validation, authorization, not-found and state errors."""
        request_id = _request_id(request)

        # HTTPException keeps the structured payload in exc.detail
        detail_str = None
        if isinstance(exc.detail, dict):
            detail_str = exc.detail.get("detail")
        elif isinstance(exc.detail, str):
            detail_str = exc.detail

        logger.warning(
            "api_error",
            request_id=request_id,
            code=exc.code,
            message=exc.message,
            detail=detail_str,
        )

        return _error_response(
            exc.status_code,
            exc.message,
            exc.code,
            request_id,
            detail=detail_str,
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """Render framework-raised HTTP errors (401 from auth, 404 routes, ...)."""
        request_id = _request_id(request)

        logger.warning(
            "http_error",
            request_id=request_id,
            status_code=exc.status_code,
            detail=exc.detail,
        )

        return _error_response(
            exc.status_code,
            str(exc.detail),
            f"HTTP_{exc.status_code}",
            request_id,
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Render malformed or missing request fields as VALIDATION_ERROR."""
        request_id = _request_id(request)

        errors = []
        for error in exc.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

        logger.warning(
            "validation_error",
            request_id=request_id,
            errors=errors,
        )

        return _error_response(
            422,
            "Validation error",
            "VALIDATION_ERROR",
            request_id,
            detail="; ".join(errors),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        """Render unique/foreign-key violations as a conflict."""
        request_id = _request_id(request)

        logger.warning(
            "integrity_error",
            request_id=request_id,
            error=str(exc.orig),
        )

        return _error_response(
            409,
            "Conflicting record",
            "CONFLICT",
            request_id,
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Render anything else as a 500 without exposing internals."""
        request_id = _request_id(request)

        logger.exception(
            "unhandled_error",
            request_id=request_id,
            error_type=type(exc).__name__,
            error=str(exc),
        )

        return _error_response(
            500,
            "Internal server error",
            "INTERNAL_ERROR",
            request_id,
        )
