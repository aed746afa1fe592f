"""Shared fixtures: in-memory database, test users and a fake generation endpoint."""

import os

# Settings are read at import time
os.environ.setdefault("POSTGRES_HOST", "localhost")
os.environ.setdefault("POSTGRES_DB_PORT", "5432")
os.environ.setdefault("POSTGRES_DB_NAME", "flashcards")
os.environ.setdefault("POSTGRES_DB_USER", "flashcards")
os.environ.setdefault("POSTGRES_DB_PASSWORD", "flashcards")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("MODE", "test")

from collections.abc import AsyncIterator

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.core.db.base import Base
from app.core.db.schemas.auth import User
from app.modules.flashcards.client import GenerationClient
from app.modules.flashcards.workflow import WorkflowRegistry

GENERATION_URL = "http://generator.test/api/generate"

SCENARIO_TEXT = "The sky is blue. Grass is green."
SCENARIO_CARDS = [
    {"front": "What color is the sky?", "back": "Blue"},
    {"front": "What color is grass?", "back": "Green"},
]


class GenerationEndpointStub:
    """Stands in for the generation endpoint behind ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.status_code = 200
        self.payload: object = SCENARIO_CARDS
        self.error: Exception | None = None
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.payload)

    def client(self) -> GenerationClient:
        return GenerationClient(
            GENERATION_URL, timeout=5.0, transport=httpx.MockTransport(self)
        )


@pytest.fixture
def endpoint() -> GenerationEndpointStub:
    return GenerationEndpointStub()


@pytest_asyncio.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    import app.core.db.schemas  # noqa: F401

    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    async with session_maker() as session:
        yield session


async def _make_user(session: AsyncSession, email: str) -> User:
    user = User(
        email=email,
        hashed_password="not-a-real-hash",
        is_active=True,
        is_superuser=False,
        is_verified=True,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture
async def user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "learner@example.com")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "other@example.com")


@pytest_asyncio.fixture
async def api_client(
    session_maker: async_sessionmaker[AsyncSession],
    user: User,
    endpoint: GenerationEndpointStub,
) -> AsyncIterator[httpx.AsyncClient]:
    from main import app
    from app.apis.deps import get_generation_client, get_workflow_registry
    from app.core.db.base import get_session
    from app.modules.auth import current_active_user

    async def override_session() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    registry = WorkflowRegistry()
    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[current_active_user] = lambda: user
    app.dependency_overrides[get_generation_client] = endpoint.client
    app.dependency_overrides[get_workflow_registry] = lambda: registry

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
