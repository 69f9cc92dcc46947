"""
Root Pytest Fixtures.

Shared fixtures available to all test types.

Test Database Configuration:
    Every test gets its own in-memory SQLite database (aiosqlite) with
    foreign keys on and every table, including the FTS5 search index,
    created from the model metadata. Nothing leaks between tests.

Configuration comes from config/settings/*.yaml in the project root.
Secrets are supplied through the environment below, so no config/.env
is needed.
"""

import os

os.environ.setdefault("DB_PASSWORD", "test-password")
os.environ.setdefault("API_KEY_SALT", "test-salt")

from collections.abc import AsyncGenerator, Callable, Coroutine
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from notevault.backend.core.database import enable_sqlite_foreign_keys
from notevault.backend.core.rate_limit import get_rate_limiter
from notevault.backend.models import Base, Note, User
from notevault.backend.services.auth import AuthService

UserFactory = Callable[..., Coroutine[Any, Any, User]]
NoteFactory = Callable[..., Coroutine[Any, Any, Note]]


# =============================================================================
# Database Engine Fixtures
# =============================================================================


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Create a fresh in-memory database for one test.

    StaticPool keeps the single connection alive so every session in the
    test sees the same in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def db_session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine, configured like the app's."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(
    db_session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a database session for a single test.

    Usage:
        async def test_create_note(db_session: AsyncSession, user):
            note = await NoteService(db_session).create_note(user, title="Hi")
            assert note.id is not None
    """
    async with db_session_factory() as session:
        yield session
        await session.rollback()


# =============================================================================
# Data Factories
# =============================================================================


@pytest.fixture
def make_user(db_session: AsyncSession) -> UserFactory:
    """
    Create users directly, skipping bcrypt.

    Users get a federated identity so they satisfy the
    password-or-federated-identity rule without hashing a password.
    """
    counter = {"n": 0}

    async def _make(
        name: str | None = None,
        email: str | None = None,
        **kwargs: Any,
    ) -> User:
        counter["n"] += 1
        n = counter["n"]
        kwargs.setdefault("provider", "github")
        kwargs.setdefault("uid", f"uid-{n}")
        user = User(
            name=name or f"User {n}",
            email=email or f"user{n}@example.com",
            **kwargs,
        )
        db_session.add(user)
        await db_session.flush()
        await db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_note(db_session: AsyncSession) -> NoteFactory:
    """Insert a note with the given attributes, bypassing the service."""

    async def _make(owner: User, **kwargs: Any) -> Note:
        kwargs.setdefault("title", "A note")
        kwargs.setdefault("body", "")
        note = Note(user_id=owner.id, **kwargs)
        db_session.add(note)
        await db_session.flush()
        await db_session.refresh(note)
        return note

    return _make


@pytest.fixture
async def owner(make_user: UserFactory) -> User:
    return await make_user(name="Owner", email="owner@example.com")


@pytest.fixture
async def recipient(make_user: UserFactory) -> User:
    return await make_user(name="Recipient", email="recipient@example.com")


@pytest.fixture
async def stranger(make_user: UserFactory) -> User:
    return await make_user(name="Stranger", email="stranger@example.com")


@pytest.fixture
def issue_token(db_session: AsyncSession) -> Callable[[User], Coroutine[Any, Any, str]]:
    """Issue a real API token for a user and return the plaintext."""

    async def _issue(user: User) -> str:
        issued = await AuthService(db_session).issue_token(user)
        return issued.token

    return _issue


# =============================================================================
# Global State
# =============================================================================


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> None:
    """Start every test with empty rate-limit windows."""
    get_rate_limiter().reset()


@pytest.fixture
def anyio_backend() -> str:
    """Specify the async backend for anyio."""
    return "asyncio"
