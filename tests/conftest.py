"""Shared fixtures: in-memory database, a signed-up user and an API client."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from components.budget.service import BudgetService
from components.core.config import get_settings
from components.core.database import DatabaseManager
from components.core.init_db import get_db
from components.user.repository import UserRepository
from components.user.schemas import UserCreate
from restapi.router import create_app

ADMIN_KEY = "test-admin-key"


class FrozenClock:
    """Callable clock returning a naive UTC instant that tests move by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
async def db_manager():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    manager = DatabaseManager(engine=engine)
    await manager.create_tables()
    yield manager
    await engine.dispose()


@pytest.fixture
async def session(db_manager):
    async with db_manager.get_db() as session:
        yield session


@pytest.fixture
async def user(session):
    repo = UserRepository(session)
    return await repo.create(
        UserCreate(email="Alex@Example.com", password="secret123"),
        annual_income=Decimal("55000.00"),
    )


@pytest.fixture
def clock():
    # Wednesday 2026-10-21 13:00 in Melbourne (AEDT, UTC+11)
    return FrozenClock(datetime(2026, 10, 21, 2, 0))


@pytest.fixture
def service(session, user, clock):
    return BudgetService(session, user, clock=clock)


@pytest.fixture
def admin_key(monkeypatch):
    monkeypatch.setattr(get_settings(), "ADMIN_API_KEY", ADMIN_KEY)
    return ADMIN_KEY


@pytest.fixture
async def client(db_manager):
    app = create_app()

    async def override_get_db():
        async with db_manager.get_db() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
async def auth_headers(client):
    response = await client.post(
        "/auth/register",
        json={"email": "sam@example.com", "password": "hunter22"},
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
