"""Profile API routes."""

from typing import Optional
from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.database import get_db
from ..services.auth import Session
from ..services.user import UserService
from .auth import get_current_session, user_to_response, UserResponse


router = APIRouter(prefix="/api/profile", tags=["profile"])


class UpdateProfileRequest(BaseModel):
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


@router.get("", response_model=UserResponse)
async def get_profile(
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Get the current user's profile."""
    user = await UserService(db).get_user_by_id(session.user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return user_to_response(user)


@router.put("", response_model=UserResponse)
async def update_profile(
    request: UpdateProfileRequest,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Update the current user's name or avatar URL."""
    user = await UserService(db).update_profile(
        session.user_id,
        full_name=request.full_name.strip() if request.full_name else None,
        avatar_url=request.avatar_url,
    )
    if user is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return user_to_response(user)
