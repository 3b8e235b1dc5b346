from contextlib import contextmanager
from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.base import Base

# Import all models so metadata includes every table
from services.lessons_service import models as _lesson_models  # noqa: F401


def make_admin_user(user_id: str = "admin-1", email: str = "admin@example.com") -> AuthUser:
    return AuthUser(user_id=user_id, email=email, role="admin")


def make_instructor_user(
    email: str = "coach@example.com", user_id: str = "instructor-1"
) -> AuthUser:
    return AuthUser(user_id=user_id, email=email, role="instructor")


def make_customer_user(
    user_id: str = "customer-1", email: str = "parent@example.com"
) -> AuthUser:
    return AuthUser(user_id=user_id, email=email, role="customer")


@contextmanager
def override_auth(app, user: AuthUser):
    """Temporarily authenticate every request to ``app`` as ``user``."""
    previous = app.dependency_overrides.get(get_current_user)
    app.dependency_overrides[get_current_user] = lambda: user
    try:
        yield user
    finally:
        if previous is None:
            app.dependency_overrides.pop(get_current_user, None)
        else:
            app.dependency_overrides[get_current_user] = previous


@pytest_asyncio.fixture
async def test_engine():
    """
    Fresh in-memory SQLite database per test.
    StaticPool keeps the single connection alive so every session sees the same data.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    """
    Session factory over an on-disk SQLite database.
    Each session gets its own connection, so concurrent sessions contend for
    the write lock the way separate requests do.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'lessons.db'}",
        connect_args={"timeout": 15},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    await engine.dispose()


@pytest_asyncio.fixture
async def lessons_client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """
    AsyncClient against the lessons app with the DB dependency pointed at
    ``db_session``. Requests are authenticated as an admin unless a test
    wraps them in ``override_auth``.
    """
    from libs.db.session import get_async_db
    from services.lessons_service.app.main import app

    app.dependency_overrides[get_async_db] = lambda: db_session
    app.dependency_overrides[get_current_user] = lambda: make_admin_user()

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
