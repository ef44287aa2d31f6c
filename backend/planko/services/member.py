"""Board membership and invite service."""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_config
from ..models.board import BoardInvite, BoardMember, MemberRole
from ..models.user import User

logger = logging.getLogger(__name__)


class InviteError(Exception):
    """Raised when an invite cannot be created or redeemed."""


class MemberService:
    """Service for board members and invite links."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_members(self, board_id: str) -> list[BoardMember]:
        """Get a board's members with their profiles, oldest first."""
        result = await self.db.execute(
            select(BoardMember)
            .where(BoardMember.board_id == board_id)
            .order_by(BoardMember.created_at)
        )
        return list(result.unique().scalars().all())

    async def get_member_by_id(self, member_id: str) -> Optional[BoardMember]:
        """Get a membership row by ID."""
        result = await self.db.execute(
            select(BoardMember).where(BoardMember.id == member_id)
        )
        return result.unique().scalar_one_or_none()

    async def get_membership(self, board_id: str, user_id: str) -> Optional[BoardMember]:
        """Get a user's membership of a board."""
        result = await self.db.execute(
            select(BoardMember).where(
                BoardMember.board_id == board_id,
                BoardMember.user_id == user_id,
            )
        )
        return result.unique().scalar_one_or_none()

    async def is_member_email(self, board_id: str, email: str) -> bool:
        """Check whether an email address already belongs to a board member."""
        result = await self.db.execute(
            select(BoardMember.id)
            .join(User, User.id == BoardMember.user_id)
            .where(
                BoardMember.board_id == board_id,
                User.email == email.strip().lower(),
            )
        )
        return result.first() is not None

    async def remove_member(self, member_id: str) -> bool:
        """Remove a member from a board. The owner cannot be removed."""
        member = await self.get_member_by_id(member_id)
        if member is None:
            return False

        if member.role == MemberRole.OWNER.value:
            raise InviteError("The board owner cannot be removed")

        await self.db.delete(member)
        await self.db.flush()
        return True

    async def create_invite(
        self, board_id: str, created_by: str, email: Optional[str] = None
    ) -> BoardInvite:
        """Create an invite token for a board."""
        if email and await self.is_member_email(board_id, email):
            raise InviteError("User is already a member of this board")

        ttl = timedelta(hours=get_config().invites.link_ttl_hours)
        invite = BoardInvite(
            board_id=board_id,
            token=secrets.token_urlsafe(24),
            email=email.strip().lower() if email else None,
            created_by=created_by,
            expires_at=datetime.utcnow() + ttl,
        )
        self.db.add(invite)
        await self.db.flush()
        return invite

    async def join_via_token(self, token: str, user_id: str) -> str:
        """
        Redeem an invite token for a user and return the board ID.

        Joining a board the user already belongs to is not an error; the
        existing membership is kept.
        """
        result = await self.db.execute(
            select(BoardInvite).where(BoardInvite.token == token)
        )
        invite = result.scalar_one_or_none()
        if invite is None:
            raise InviteError("Invalid invite link")

        if invite.expires_at < datetime.utcnow():
            raise InviteError("Invite link has expired")

        if await self.get_membership(invite.board_id, user_id) is None:
            self.db.add(
                BoardMember(
                    board_id=invite.board_id,
                    user_id=user_id,
                    role=MemberRole.MEMBER.value,
                )
            )
            logger.info(f"User {user_id} joined board {invite.board_id}")

        if invite.email:
            # Email invites are single use
            invite.accepted_at = datetime.utcnow()
            invite.expires_at = invite.accepted_at

        await self.db.flush()
        return invite.board_id

    async def delete_expired_invites(self) -> int:
        """Remove invites that can no longer be redeemed."""
        result = await self.db.execute(
            delete(BoardInvite).where(BoardInvite.expires_at < datetime.utcnow())
        )
        await self.db.flush()
        return result.rowcount or 0
