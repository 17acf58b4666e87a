"""Shared pytest fixtures and configuration."""

import os
import pytest
import pytest_asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock
from datetime import date

# Set test environment variables before the application modules read them
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("LOG_FORMAT", "plain")

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from commission_guard.config import Settings
from commission_guard.db.base_class import Base
import commission_guard.models  # noqa: F401  registers every table on Base.metadata

from tests.utils.factories import create_client, create_contract, create_user


@pytest.fixture
def settings():
    """Settings with every external provider and channel unconfigured."""
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite://",
        commission_rate=0.03,
        high_risk_loss_threshold=10000,
        average_commission=2000,
        provider_timeout_seconds=1.0,
        county_records_api_url="",
        county_records_api_key="",
        attom_api_key="",
        rentcast_api_key="",
        regrid_api_key="",
        sendgrid_api_key="",
        twilio_account_sid="",
        twilio_auth_token="",
        twilio_from_number="",
    )


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite so that separate sessions see each other's commits."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'commission_guard.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_redis():
    """Mock Redis client; cache always misses."""
    redis = AsyncMock()
    redis.get.return_value = None
    redis.lpop.return_value = None
    return redis


@pytest_asyncio.fixture
async def seed(db):
    """
    agent-1 (Alice Agent) holds a buyer contract with John Smith for the first
    half of 2024. agent-2 is an unrelated agent, admin-1 an administrator.
    """
    agent = await create_user(db, "agent-1", first_name="Alice", last_name="Agent", license_number="LIC-123")
    other_agent = await create_user(db, "agent-2", first_name="Bob", last_name="Broker")
    admin = await create_user(db, "admin-1", role="admin", first_name="Ada", last_name="Admin")
    client = await create_client(db, agent, "John Smith")
    contract = await create_contract(db, agent, client, date(2024, 1, 1), date(2024, 6, 30))
    await db.commit()
    return SimpleNamespace(agent=agent, other_agent=other_agent, admin=admin, client=client, contract=contract)


@pytest_asyncio.fixture
async def api(session_factory, mock_redis, settings):
    """
    HTTP client against the app with storage, Redis, the scanner and the
    notifier replaced. ``api.scanner.records`` controls what the scan sees.
    """
    import httpx
    from commission_guard.config import get_settings
    from commission_guard.db.redis_client import get_redis
    from commission_guard.db.session import get_db
    from commission_guard.dependencies import get_notifier, get_scanner
    from commission_guard.main import app
    from tests.utils.factories import make_sale_record
    from tests.utils.fakes import FakeScanner

    async def override_get_db():
        async with session_factory() as session:
            yield session

    scanner = FakeScanner([make_sale_record()])
    notifier = AsyncMock()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: mock_redis
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_scanner] = lambda: scanner
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield SimpleNamespace(client=client, scanner=scanner, notifier=notifier, redis=mock_redis)

    app.dependency_overrides.clear()
