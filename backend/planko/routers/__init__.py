"""API routers for Planko."""

from .auth import router as auth_router
from .profile import router as profile_router
from .boards import router as boards_router
from .columns import router as columns_router
from .tasks import router as tasks_router
from .subtasks import router as subtasks_router
from .members import router as members_router

__all__ = [
    "auth_router",
    "profile_router",
    "boards_router",
    "columns_router",
    "tasks_router",
    "subtasks_router",
    "members_router",
]
