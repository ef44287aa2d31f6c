"""User service for accounts and profiles."""

from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.user import User
from .auth import hash_password


class UserService:
    """Service for managing users."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Get a user by ID."""
        result = await self.db.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email."""
        result = await self.db.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def create_user(
        self,
        email: str,
        password: str,
        full_name: Optional[str] = None,
    ) -> User:
        """Create a new user with a hashed password."""
        user = User(
            email=email.strip().lower(),
            full_name=full_name,
            password_hash=hash_password(password),
        )
        self.db.add(user)
        await self.db.flush()
        return user

    async def update_profile(
        self,
        user_id: str,
        full_name: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> Optional[User]:
        """Update a user's profile fields."""
        user = await self.get_user_by_id(user_id)
        if user is None:
            return None

        if full_name is not None:
            user.full_name = full_name
        if avatar_url is not None:
            # Empty string removes the avatar
            user.avatar_url = avatar_url or None

        await self.db.flush()
        return user

    async def update_last_login(self, user_id: str) -> None:
        """Update user's last login time."""
        user = await self.get_user_by_id(user_id)
        if user:
            user.last_login = datetime.utcnow()
            await self.db.flush()
