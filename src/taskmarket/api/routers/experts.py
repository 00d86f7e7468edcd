"""Expert directory and profile endpoints."""

from fastapi import APIRouter

from ..dependencies import AppEventBus, CurrentUserId, DBSession, Presence
from ..schemas import (
    AvailabilityUpdate,
    ExpertProfileResponse,
    ExpertProfileUpdate,
    ExpertResponse,
    UserResponse,
)
from ..services import ExpertService

router = APIRouter(prefix="/experts", tags=["experts"])


@router.get(
    "/available",
    response_model=list[ExpertResponse],
    summary="List available experts",
)
async def list_available_experts(
    db: DBSession,
    user_id: CurrentUserId,
) -> list[ExpertResponse]:
    """List experts accepting work, best rated first."""
    service = ExpertService(db)
    return await service.list_available()


@router.get(
    "/online",
    response_model=list[ExpertResponse],
    summary="List available experts currently online",
)
async def list_online_experts(
    db: DBSession,
    presence: Presence,
    user_id: CurrentUserId,
) -> list[ExpertResponse]:
    """List available experts with a live WebSocket connection.

    Empty when presence tracking is disabled.
    """
    service = ExpertService(db, presence=presence)
    return await service.list_online()


@router.patch(
    "/availability",
    response_model=UserResponse,
    summary="Set own availability",
)
async def set_availability(
    request: AvailabilityUpdate,
    db: DBSession,
    event_bus: AppEventBus,
    user_id: CurrentUserId,
) -> UserResponse:
    """Toggle whether the calling expert accepts new tasks.

    Connected clients receive an availability-changed notification.

    Args:
        request: New availability
        db: Database session
        event_bus: EventBus for real-time notifications
        user_id: Current user ID

    Returns:
        Updated profile
    """
    service = ExpertService(db, event_bus)
    return await service.set_availability(user_id, request.is_available)


@router.patch(
    "/profile",
    response_model=UserResponse,
    summary="Update own expert profile",
)
async def update_profile(
    request: ExpertProfileUpdate,
    db: DBSession,
    user_id: CurrentUserId,
) -> UserResponse:
    """Update skills, bio, hourly rate or avatar.

    Args:
        request: Fields to change
        db: Database session
        user_id: Current user ID

    Returns:
        Updated profile
    """
    service = ExpertService(db)
    return await service.update_profile(user_id, request)


@router.get(
    "/{expert_id}",
    response_model=ExpertProfileResponse,
    summary="Get expert profile",
)
async def get_expert(
    expert_id: str,
    db: DBSession,
    user_id: CurrentUserId,
) -> ExpertProfileResponse:
    """Get an expert's public profile with completed projects."""
    service = ExpertService(db)
    return await service.get_profile(expert_id)
