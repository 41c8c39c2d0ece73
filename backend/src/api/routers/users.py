"""Endpoints about the current user."""
from fastapi import APIRouter, Depends

from api.dependencies import SessionUser, get_current_user
from schemas.user import SessionUserResponse


router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=SessionUserResponse)
async def get_me(current_user: SessionUser = Depends(get_current_user)) -> SessionUser:
    """Get the current authenticated user's info."""
    return current_user
