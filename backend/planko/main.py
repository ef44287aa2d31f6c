"""Main FastAPI application for Planko."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .config import load_config
from .models.database import init_db, close_db, get_session_factory
from .services.auth import get_auth_service
from .services.member import MemberService
from .utils.logging import setup_logging
from .routers import (
    auth_router,
    profile_router,
    boards_router,
    columns_router,
    tasks_router,
    subtasks_router,
    members_router,
)

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_SECONDS = 3600

# Background tasks
_cleanup_task: asyncio.Task | None = None


async def run_cleanup() -> None:
    """Drop expired sessions and invite links."""
    expired_sessions = get_auth_service().purge_expired()
    if expired_sessions:
        logger.info(f"Removed {expired_sessions} expired sessions")

    session_factory = await get_session_factory()
    async with session_factory() as db:
        removed = await MemberService(db).delete_expired_invites()
        await db.commit()
    if removed:
        logger.info(f"Removed {removed} expired invite links")


async def cleanup_task():
    """Background task for session and invite cleanup."""
    logger.info("Cleanup task started")

    while True:
        try:
            await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
            await run_cleanup()
        except asyncio.CancelledError:
            break
        except SQLAlchemyError as e:
            logger.error(f"Cleanup task error: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global _cleanup_task

    # Startup
    config = load_config()
    setup_logging()
    logger.info("Starting Planko...")

    await init_db()
    logger.info("Database initialized")

    logger.info(f"Server: {config.server.host}:{config.server.port}")
    logger.info(f"Debug mode: {config.server.debug}")
    logger.info(f"Email invites: {'enabled' if config.smtp.enabled else 'disabled'}")
    logger.info(f"AI breakdown: {'enabled' if config.ai.enabled else 'disabled'} (model: {config.ai.model})")

    _cleanup_task = asyncio.create_task(cleanup_task())

    yield

    # Shutdown
    logger.info("Shutting down Planko...")

    if _cleanup_task:
        _cleanup_task.cancel()
        try:
            await _cleanup_task
        except asyncio.CancelledError:
            pass

    await close_db()


app = FastAPI(
    title="Planko",
    description="Collaborative kanban boards",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware (for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(boards_router)
app.include_router(columns_router)
app.include_router(tasks_router)
app.include_router(subtasks_router)
app.include_router(members_router)


# Health check endpoint
@app.get("/api/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "service": "planko"}


if __name__ == "__main__":
    import uvicorn

    config = load_config()
    uvicorn.run(
        "planko.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.debug,
    )
