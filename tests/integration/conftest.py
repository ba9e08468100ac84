"""Integration test fixtures with a real (in-memory SQLite) database."""

from collections.abc import AsyncGenerator
from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from club_payments.api.app import create_app
from club_payments.database import create_schema, make_session_factory
from club_payments.models import Player, Team
from club_payments.service import PaymentStatusService
from club_payments.store import SqlPaymentStore

from ..conftest import FAST_REFRESH, NOW, FixedClock

# One shared connection so every session sees the same in-memory database.
TEST_DATABASE_URL = "sqlite+aiosqlite://"

TEAM_ID = "team-u12"
PLAYER_IDS = ("p1", "p2", "p3")


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh schema per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(test_engine)


@pytest_asyncio.fixture
async def seeded_db(
    session_factory: async_sessionmaker[AsyncSession],
) -> async_sessionmaker[AsyncSession]:
    """One team with three players; p3 joined on a trial 40 days ago."""
    async with session_factory() as session:
        async with session.begin():
            session.add(Team(team_id=TEAM_ID, name="Under 12"))
            session.add_all(
                [
                    Player(
                        player_id="p1",
                        team_id=TEAM_ID,
                        name="Ada",
                        payment_status="paid",
                        last_payment_date=NOW - timedelta(days=45),
                        created_at=NOW - timedelta(days=400),
                    ),
                    Player(
                        player_id="p2",
                        team_id=TEAM_ID,
                        name="Ben",
                        payment_status="not_paid",
                        created_at=NOW - timedelta(days=200),
                    ),
                    Player(
                        player_id="p3",
                        team_id=TEAM_ID,
                        name="Cleo",
                        payment_status="on_trial",
                        created_at=NOW - timedelta(days=40),
                    ),
                ]
            )
    return session_factory


@pytest.fixture
def sql_store(seeded_db: async_sessionmaker[AsyncSession]) -> SqlPaymentStore:
    return SqlPaymentStore(seeded_db)


@pytest.fixture
def sql_clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def sql_service(sql_store: SqlPaymentStore, sql_clock: FixedClock) -> PaymentStatusService:
    return PaymentStatusService(sql_store, refresh_config=FAST_REFRESH, clock=sql_clock)


@pytest_asyncio.fixture
async def client(
    sql_service: PaymentStatusService, test_engine: AsyncEngine
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app wired to the SQLite-backed service."""
    app = create_app(sql_service)
    app.state.engine = test_engine
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
