"""Services for Planko."""

from .auth import AuthService, get_auth_service
from .user import UserService
from .board import BoardService
from .column import ColumnService
from .task import TaskService
from .subtask import SubtaskService
from .member import MemberService, InviteError
from .notification import NotificationService
from .ai_breakdown import AiBreakdownService, AiBreakdownError

__all__ = [
    "AuthService",
    "get_auth_service",
    "UserService",
    "BoardService",
    "ColumnService",
    "TaskService",
    "SubtaskService",
    "MemberService",
    "InviteError",
    "NotificationService",
    "AiBreakdownService",
    "AiBreakdownError",
]
