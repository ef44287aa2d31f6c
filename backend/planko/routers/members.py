"""Board member and invite API routes."""

from typing import Optional
from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.database import get_db
from ..services.auth import Session
from ..services.member import MemberService, InviteError
from ..services.notification import NotificationService
from ..services.user import UserService
from .access import require_board, require_owner
from .auth import get_current_session, UserResponse, user_to_response


router = APIRouter(prefix="/api", tags=["members"])


class MemberSchema(BaseModel):
    id: str
    board_id: str
    user_id: str
    role: str
    created_at: str
    profile: UserResponse


class InviteSchema(BaseModel):
    token: str
    url: str
    email: Optional[str] = None
    expires_at: str
    email_sent: bool = False


class EmailInviteRequest(BaseModel):
    email: str


class JoinResponse(BaseModel):
    board_id: str


def member_to_schema(member) -> MemberSchema:
    """Convert a BoardMember model to MemberSchema."""
    return MemberSchema(
        id=member.id,
        board_id=member.board_id,
        user_id=member.user_id,
        role=member.role,
        created_at=member.created_at.isoformat(),
        profile=user_to_response(member.user),
    )


def invite_to_schema(invite, email_sent: bool = False) -> InviteSchema:
    return InviteSchema(
        token=invite.token,
        url=NotificationService().build_invite_url(invite.token),
        email=invite.email,
        expires_at=invite.expires_at.isoformat(),
        email_sent=email_sent,
    )


@router.get("/boards/{board_id}/members", response_model=list[MemberSchema])
async def get_members(
    board_id: str,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """List a board's members with their profiles."""
    await require_board(db, board_id, session)
    members = await MemberService(db).get_members(board_id)
    return [member_to_schema(m) for m in members]


@router.post("/boards/{board_id}/invite-link", response_model=InviteSchema)
async def create_invite_link(
    board_id: str,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Create a shareable invite link for a board."""
    await require_board(db, board_id, session)
    invite = await MemberService(db).create_invite(board_id, session.user_id)
    return invite_to_schema(invite)


@router.post("/boards/{board_id}/invites", response_model=InviteSchema)
async def invite_by_email(
    board_id: str,
    request: EmailInviteRequest,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Invite someone by email (owner only)."""
    email = request.email.strip().lower()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="A valid email is required")

    board = await require_owner(db, board_id, session)

    try:
        invite = await MemberService(db).create_invite(board_id, session.user_id, email)
    except InviteError as e:
        raise HTTPException(status_code=400, detail=str(e))

    inviter = await UserService(db).get_user_by_id(session.user_id)
    email_sent = await NotificationService().send_board_invite(
        email,
        board.title,
        invite.token,
        invited_by=(inviter.full_name or inviter.email) if inviter else None,
    )
    return invite_to_schema(invite, email_sent)


@router.post("/join/{token}", response_model=JoinResponse)
async def join_board(
    token: str,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Join a board through an invite token."""
    try:
        board_id = await MemberService(db).join_via_token(token, session.user_id)
    except InviteError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return JoinResponse(board_id=board_id)


@router.delete("/boards/{board_id}/members/{member_id}")
async def remove_member(
    board_id: str,
    member_id: str,
    db: AsyncSession = Depends(get_db),
    session: Session = Depends(get_current_session),
):
    """Remove a member from a board (owner only)."""
    await require_owner(db, board_id, session)

    member_service = MemberService(db)
    member = await member_service.get_member_by_id(member_id)
    if member is None or member.board_id != board_id:
        raise HTTPException(status_code=404, detail="Member not found")

    try:
        await member_service.remove_member(member_id)
    except InviteError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {"message": "Member removed"}
