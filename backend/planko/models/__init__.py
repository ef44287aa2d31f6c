"""Database models for Planko."""

from .database import Base, get_db, init_db
from .user import User
from .board import Board, BoardMember, BoardInvite, MemberRole
from .column import Column
from .task import Task, TaskPriority
from .subtask import Subtask

__all__ = [
    "Base",
    "get_db",
    "init_db",
    "User",
    "Board",
    "BoardMember",
    "BoardInvite",
    "MemberRole",
    "Column",
    "Task",
    "TaskPriority",
    "Subtask",
]
