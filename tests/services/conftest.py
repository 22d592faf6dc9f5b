"""Service test fixtures — async DB, FastAPI test client, and in-memory fakes.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - db_manager patched so the readiness probe sees the test engine
    - Fakes implement the core/repository_protocols.py Protocols structurally

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (PostgreSQL-specific features not exercised here)
    - FakeClock returns epoch ms and only moves when a test advances it
    - RecordingSink can block on a gate: lets tests hold a submit "in flight"
"""

import asyncio
import random

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from sitetrack.core.errors import SinkWriteError, StorageError
from sitetrack.db.base import Base
from sitetrack.infrastructure.database import get_db, DatabaseSessionManager
from sitetrack.infrastructure.identity_store import InMemoryIdentityStore
import sitetrack.infrastructure.database as db_module
import sitetrack.models  # noqa: F401
from sitetrack.main import app

T0_MS = 1_718_000_000_000


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


# ─── Fakes ───────────────────────────────────────────────────────

class FakeClock:
    def __init__(self, now_ms: int = T0_MS):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance_minutes(self, minutes: float) -> None:
        self.now_ms += int(minutes * 60 * 1000)


class RecordingSink:
    """TelemetrySink that keeps every record; optionally fails or blocks."""

    def __init__(self, fail: Exception | None = None):
        self.records: list[tuple] = []
        self.fail = fail
        self.gate: asyncio.Event | None = None
        self.entered = asyncio.Event()

    async def insert(self, sink, record):
        self.entered.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.fail is not None:
            raise self.fail
        self.records.append((sink, record))

    def of(self, sink) -> list[dict]:
        return [record for s, record in self.records if s == sink]


class FakePage:
    def __init__(
        self,
        title: str | None = "Shop",
        referrer: str | None = "https://www.google.com/search?q=shoes",
        user_agent: str = (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
    ):
        self.title = title
        self.ref = referrer
        self.ua = user_agent

    def page_title(self):
        return self.title

    def referrer(self):
        return self.ref

    def user_agent(self):
        return self.ua


class BrokenStore:
    """IdentityStore whose every access fails (private mode, quota, permissions)."""

    def get(self, key):
        raise StorageError("storage disabled", key)

    def set(self, key, value):
        raise StorageError("storage disabled", key)


class StaticUser:
    def __init__(self, user_id=None, fail: Exception | None = None):
        self.user_id = user_id
        self.fail = fail

    async def current_user_id(self):
        if self.fail is not None:
            raise self.fail
        return self.user_id


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def store():
    return InMemoryIdentityStore()


@pytest.fixture
def broken_store():
    return BrokenStore()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def failing_sink():
    return RecordingSink(fail=SinkWriteError("HTTP 500", "site_visits", status_code=500))


@pytest.fixture
def page():
    return FakePage()


@pytest.fixture
def static_user():
    return StaticUser
