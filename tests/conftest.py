"""
Shared test fixtures.

Uses a throwaway SQLite database file per test (via aiosqlite) so tests run
without Docker / PostgreSQL / Redis.  A file rather than ``:memory:`` lets
concurrent sessions see the same data, which the seat-ledger race tests need.
Notifications are captured by ``RecordingNotifier`` instead of Redis.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from unipool.infrastructure.database import Base
from unipool.infrastructure.models import RideModel


class RecordingNotifier:
    """Collects ``(channel, event, payload)`` tuples."""

    def __init__(self):
        self.messages: list[tuple[str, str, dict[str, Any]]] = []

    async def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        self.messages.append((channel, event, payload))

    def channels(self, event: str | None = None) -> list[str]:
        return [c for c, e, _ in self.messages if event is None or e == event]


class FailingNotifier:
    async def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        raise ConnectionError("pub/sub unavailable")


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Create tables in a fresh SQLite file, yield a session factory, dispose."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'unipool-test.db'}",
        echo=False,
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_ride(session_factory):
    """Factory: insert a scheduled ride and return its id."""

    async def _make(
        seats_total: int = 2,
        driver_id: str = "driver-1",
        **overrides,
    ) -> str:
        values = dict(
            driver_id=driver_id,
            source_lat=12.97,
            source_lng=77.59,
            source_address="Main Gate",
            dest_lat=12.93,
            dest_lng=77.62,
            dest_address="Tech Park",
            departure_time=datetime.now(timezone.utc) + timedelta(hours=2),
            seats_total=seats_total,
            seats_available=seats_total,
            cost_per_seat=50,
        )
        values.update(overrides)
        async with session_factory() as session:
            ride = RideModel(**values)
            session.add(ride)
            await session.commit()
            return ride.id

    return _make


@pytest_asyncio.fixture
async def client(session_factory, notifier) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient backed by SQLite + the recording notifier."""
    from unipool.api.app import create_app
    from unipool.api.dependencies import get_db, get_notifier
    from unipool.api.middleware import limiter

    async def _test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    limiter.reset()
    app = create_app()
    app.dependency_overrides[get_db] = _test_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
