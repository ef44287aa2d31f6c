"""Shared test fixtures for Planko backend tests."""

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from planko.config import load_config, reset_config
from planko.main import app
from planko.models.database import create_tables, get_db
from planko.services.board import BoardService
from planko.services.user import UserService

ENV_VARS = (
    "PLANKO_DB_PATH",
    "PLANKO_LOG_LEVEL",
    "PLANKO_SMTP_HOST",
    "PLANKO_SMTP_PASSWORD",
    "PLANKO_GEMINI_API_KEY",
    "PLANKO_APP_URL",
    "PLANKO_API_URL",
)


@pytest.fixture(autouse=True)
def config(monkeypatch, tmp_path):
    """Fresh default configuration, never read from the working directory."""
    monkeypatch.setenv("PLANKO_CONFIG", str(tmp_path / "config.yml"))
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    reset_config()
    yield load_config()
    reset_config()


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def owner(db):
    user = await UserService(db).create_user("owner@example.com", "password123", "Olive Owner")
    await db.commit()
    return user


@pytest_asyncio.fixture
async def board(db, owner):
    board = await BoardService(db).create_board("Launch", owner.id)
    await db.commit()
    return board


@pytest_asyncio.fixture
async def make_client(session_factory):
    """Build HTTP clients wired to the app and the test database; each keeps its own cookies."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    clients = []

    def factory() -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=transport, base_url="http://testserver")
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.aclose()
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def api(make_client):
    return make_client()
