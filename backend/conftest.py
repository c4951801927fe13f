"""
Pytest configuration and fixtures for backend tests.

This module provides the core testing infrastructure including:
- An in-memory SQLite database per test (tables built from SQLModel metadata)
- Session fixtures for database access
- Policy evaluator helpers for service-level tests
- Test client for API integration tests

The PostgreSQL row-level-security migrations are not exercised here; the
application policy layer is, and it enforces the same rules.
"""

from collections.abc import AsyncGenerator, Callable

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from siteaccess.db import base  # noqa: F401  # ensure models are imported for metadata
from siteaccess.db.session import get_session
from siteaccess.main import app
from siteaccess.models.user import User
from siteaccess.services.policies import PolicyEvaluator
from siteaccess.services.principals import Anonymous, AuthenticatedUser, Principal

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def engine():
    """Create a fresh in-memory database engine with all tables."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        # One shared connection, so every session sees the same in-memory database
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture(scope="function")
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database session for each test.

    The database is discarded with the engine, so no cleanup is needed.
    """
    async_session = sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with async_session() as test_session:
        yield test_session


@pytest.fixture
async def client(session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for testing API endpoints.

    This fixture:
    - Overrides the database session dependency to use the test session
    - Provides an AsyncClient configured with the FastAPI app

    Usage:
        async def test_endpoint(client: AsyncClient):
            response = await client.get("/api/v1/projects/")
            assert response.status_code == 401
    """

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def evaluator_for(session: AsyncSession) -> Callable[..., PolicyEvaluator]:
    """
    Build a PolicyEvaluator over the test session.

    Usage:
        evaluator = evaluator_for(user)                       # signed-in user
        evaluator = evaluator_for(Anonymous(tokens={...}))    # any principal
        evaluator = evaluator_for(None)                       # bare anonymous
    """

    def factory(who: User | Principal | None) -> PolicyEvaluator:
        if who is None:
            principal: Principal = Anonymous()
        elif isinstance(who, User):
            principal = AuthenticatedUser(user_id=who.id)
        else:
            principal = who
        return PolicyEvaluator(session, principal)

    return factory
