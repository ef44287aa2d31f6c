"""Password hashing and cookie sessions for board users."""

import secrets
from datetime import datetime, timedelta
from typing import Optional
from dataclasses import dataclass, field

import bcrypt

from ..config import get_config
from ..models.user import User


@dataclass
class Session:
    """A logged-in user, keyed by the value of the session_id cookie."""

    session_id: str
    user_id: str
    email: str
    created_at: datetime
    last_activity: datetime

    def is_idle(self, timeout: timedelta, now: datetime) -> bool:
        return now - self.last_activity > timeout


def hash_password(plain_password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    return bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plain password against a stored bcrypt hash."""
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def _idle_timeout() -> timedelta:
    return timedelta(minutes=get_config().session.timeout_minutes)


@dataclass
class AuthService:
    """
    Session registry for the API process.

    Accounts are stored in the database; sessions are kept in memory and
    dropped once they sit idle longer than the configured timeout, so a
    server restart logs everybody out.
    """

    _sessions: dict[str, Session] = field(default_factory=dict)

    def authenticate(self, user: Optional[User], password: str) -> Optional[Session]:
        """Open a session when the password matches the user loaded by the caller."""
        if user is None or not verify_password(password, user.password_hash):
            return None
        return self.create_session(user)

    def create_session(self, user: User) -> Session:
        """Open a session for a user whose credentials were already checked."""
        now = datetime.utcnow()
        session = Session(
            session_id=secrets.token_urlsafe(32),
            user_id=user.id,
            email=user.email,
            created_at=now,
            last_activity=now,
        )
        self._sessions[session.session_id] = session
        return session

    def get_session(self, session_id: str) -> Optional[Session]:
        """Look up a live session and mark it active. Idle sessions are dropped."""
        session = self._sessions.get(session_id)
        if session is None:
            return None

        now = datetime.utcnow()
        if session.is_idle(_idle_timeout(), now):
            self.invalidate_session(session_id)
            return None

        session.last_activity = now
        return session

    def invalidate_session(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def purge_expired(self) -> int:
        """Drop sessions past the inactivity timeout. Returns how many were removed."""
        timeout = _idle_timeout()
        now = datetime.utcnow()

        expired = [sid for sid, session in self._sessions.items() if session.is_idle(timeout, now)]
        for session_id in expired:
            del self._sessions[session_id]

        return len(expired)


_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Return the process-wide session registry."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
