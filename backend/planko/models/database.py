"""Database setup and connection management."""

import uuid
from pathlib import Path
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from ..config import get_config


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def new_id() -> str:
    """Generate an opaque primary key."""
    return str(uuid.uuid4())


_engine: Optional[AsyncEngine] = None
_async_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def get_database_url() -> str:
    """Get the database URL from configuration."""
    config = get_config()
    db_path = config.database.path

    if db_path == ":memory:":
        return "sqlite+aiosqlite://"

    # Ensure directory exists
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    return f"sqlite+aiosqlite:///{db_path}"


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables on the given engine."""
    # Import all models to register them
    from . import board, column, task, subtask, user  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db() -> None:
    """Initialize the database, creating tables if needed."""
    global _engine, _async_session_factory

    _engine = create_async_engine(
        get_database_url(),
        echo=get_config().logging.sql_echo,
    )

    _async_session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    await create_tables(_engine)


async def close_db() -> None:
    """Dispose of the engine and its pooled connections."""
    global _engine, _async_session_factory

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _async_session_factory = None


async def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the session factory, initializing the database on first use."""
    if _async_session_factory is None:
        await init_db()
    return _async_session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session."""
    session_factory = await get_session_factory()

    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
