"""Marketplace profile endpoints for the authenticated caller."""

from fastapi import APIRouter, status

from ..dependencies import CurrentUserId, DBSession
from ..schemas import UserRegister, UserResponse
from ..services import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create marketplace profile",
)
async def register(
    request: UserRegister,
    db: DBSession,
    user_id: CurrentUserId,
) -> UserResponse:
    """Create the caller's poster or expert profile.

    The profile ID is the authenticated subject; credentials stay with
    the identity provider.

    Args:
        request: Profile data
        db: Database session
        user_id: Current user ID

    Returns:
        Created profile
    """
    service = UserService(db)
    return await service.register(user_id, request)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get own profile",
)
async def get_me(
    db: DBSession,
    user_id: CurrentUserId,
) -> UserResponse:
    """Get the caller's profile."""
    service = UserService(db)
    return await service.get_me(user_id)
