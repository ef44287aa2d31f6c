"""Authentication API routes."""

from typing import Optional
from fastapi import APIRouter, HTTPException, Response, Cookie, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_config
from ..services.auth import get_auth_service, Session
from ..services.user import UserService
from ..models.database import get_db


router = APIRouter(prefix="/api/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 8


class SignupRequest(BaseModel):
    email: str
    password: str
    full_name: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


async def get_current_session(
    session_id: Optional[str] = Cookie(None, alias="session_id")
) -> Session:
    """Dependency to get and validate the current session."""
    if not session_id:
        raise HTTPException(status_code=401, detail="Not authenticated")

    auth_service = get_auth_service()
    session = auth_service.get_session(session_id)

    if session is None:
        raise HTTPException(status_code=401, detail="Session expired or invalid")

    return session


def user_to_response(user) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        avatar_url=user.avatar_url,
    )


def _set_session_cookie(response: Response, session: Session) -> None:
    response.set_cookie(
        key="session_id",
        value=session.session_id,
        httponly=True,
        secure=get_config().https.enabled,
        samesite="lax",
        max_age=None,
    )


@router.post("/signup", response_model=UserResponse)
async def signup(
    request: SignupRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Register a new account and log it in."""
    email = request.email.strip().lower()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="A valid email is required")
    if len(request.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )

    user_service = UserService(db)
    if await user_service.get_user_by_email(email):
        raise HTTPException(status_code=400, detail="Email is already registered")

    user = await user_service.create_user(email, request.password, request.full_name)
    session = get_auth_service().create_session(user)
    _set_session_cookie(response, session)

    return user_to_response(user)


@router.post("/login", response_model=UserResponse)
async def login(
    request: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Authenticate with email and password and create a session."""
    user_service = UserService(db)
    user = await user_service.get_user_by_email(request.email)

    session = get_auth_service().authenticate(user, request.password)
    if session is None:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    await user_service.update_last_login(user.id)
    _set_session_cookie(response, session)

    return user_to_response(user)


@router.post("/logout")
async def logout(
    response: Response,
    session_id: Optional[str] = Cookie(None, alias="session_id"),
):
    """Log out the current user."""
    if session_id:
        get_auth_service().invalidate_session(session_id)

    response.delete_cookie(key="session_id")
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserResponse)
async def get_current_user(
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Get the current authenticated user."""
    user = await UserService(db).get_user_by_id(session.user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Session expired or invalid")
    return user_to_response(user)
