"""Shared pytest fixtures configured to use SQLite in-memory for unit tests."""

import logging
import os

# must be set before notesuite reads its (cached) settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("DEBUG", "true")

from datetime import timedelta  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from notesuite.core import redis_client as redis_client_module  # noqa: E402
from notesuite.core.models import BaseModel, Note, NoteVisibility, Permission, Share, User  # noqa: E402
from notesuite.core.models.base import utcnow  # noqa: E402
from notesuite.database import get_db_session  # noqa: E402
from notesuite.main import app  # noqa: E402
from notesuite.security.jwt import create_access_token  # noqa: E402
from notesuite.security.password import hash_password  # noqa: E402

# Silence extremely verbose DEBUG logs from aiosqlite to keep test output readable
logging.getLogger("aiosqlite").setLevel(logging.WARNING)

TEST_PASSWORD = "TestPassword123!"
_PASSWORD_HASH = hash_password(TEST_PASSWORD)


class FakeRedis:
    """In-memory stand-in for the redis.asyncio commands the blacklist uses."""

    def __init__(self):
        self.store = {}

    async def ping(self):
        return True

    async def setex(self, key, ttl, value):
        self.store[key] = (value, ttl)
        return True

    async def exists(self, key):
        return int(key in self.store)

    async def aclose(self):
        return None


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    """Route the Redis client singleton to an in-memory fake."""
    client = redis_client_module.RedisClient()
    client.redis = FakeRedis()
    monkeypatch.setattr(redis_client_module, "_redis_client", client)
    return client.redis


@pytest.fixture
async def test_engine():
    """Fresh SQLite in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,  # keep the same memory DB across connections
        connect_args={"check_same_thread": False},
    )

    # SQLite only honours ON DELETE CASCADE / SET NULL with this pragma
    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ANN001
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
        finally:
            cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    # attributes are read after commit throughout the services
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_session(session_factory):
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()


@pytest.fixture
def test_app(session_factory):
    """App wired to the test database; every request gets its own session."""

    async def _override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = _override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(test_app):
    """HTTP client against the ASGI app (no lifespan, no network)."""
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_user(test_session):
    """Factory for persisted users; all share TEST_PASSWORD."""

    async def _make(email=None, is_active=True):
        user = User(
            email=email or f"user_{uuid4().hex[:8]}@example.com",
            password_hash=_PASSWORD_HASH,
            is_active=is_active,
        )
        test_session.add(user)
        await test_session.commit()
        return user

    return _make


@pytest.fixture
def make_note(test_session):
    async def _make(
        owner, title="Test Note", content="This is a test note content", visibility=NoteVisibility.PRIVATE
    ):
        note = Note(title=title, content=content, visibility=visibility, owner_id=owner.id)
        test_session.add(note)
        await test_session.commit()
        return note

    return _make


@pytest.fixture
def make_share(test_session):
    async def _make(note, recipient, permission=Permission.READ, expires_in=None, is_active=True):
        share = Share(
            note_id=note.id,
            shared_with_user_id=recipient.id,
            shared_by_user_id=note.owner_id,
            permission=permission,
            expires_at=utcnow() + expires_in if expires_in is not None else None,
            is_active=is_active,
        )
        test_session.add(share)
        await test_session.commit()
        return share

    return _make


@pytest.fixture
async def owner(make_user):
    return await make_user("owner@example.com")


@pytest.fixture
async def other_user(make_user):
    return await make_user("other@example.com")


@pytest.fixture
def auth_headers():
    """Authorization header with a fresh access token for a user."""

    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}

    return _headers


@pytest.fixture
def past():
    return utcnow() - timedelta(hours=1)


@pytest.fixture
def future():
    return utcnow() + timedelta(hours=1)
