"""Health check endpoints."""

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text

from taskmarket import __version__
from taskmarket.db.session import get_session_manager

router = APIRouter(tags=["health"])

logger = structlog.get_logger()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = __version__


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check API health status.

    Returns:
        Health status response
    """
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def readiness_check() -> HealthResponse | JSONResponse:
    """Check API readiness (database reachable).

    Returns:
        Readiness status response, 503 when the database is unavailable
    """
    try:
        async with get_session_manager().engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("readiness_check_failed", error=str(e))
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=HealthResponse(status="unavailable").model_dump(),
        )
    return HealthResponse(status="ready")
