# This project was developed with assistance from AI tools.
"""Shared fixtures.

Service tests run against a real async SQLAlchemy engine on in-memory SQLite
(one shared connection via StaticPool), rebuilt for every test so no state
leaks. HTTP tests drive the real app through httpx with dependency
overrides for the DB session and the authenticated user.
"""

import httpx
import pytest
import pytest_asyncio
from db import Base, get_db
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.core.config import settings

from .personas import OTHER_ORG_ID, org_ctx, other_org_admin


@pytest.fixture(autouse=True)
def _strict_default_policy(monkeypatch):
    """Every test starts on the single-default policy unless it opts out."""
    monkeypatch.setattr(settings, "SINGLE_DEFAULT_PER_ORG", True)


@pytest_asyncio.fixture
async def async_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(async_engine):
    """Per-test session, configured like the app's SessionLocal."""
    factory = async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )
    async with factory() as session:
        yield session


@pytest.fixture
def ctx():
    """OrgContext for the primary test org, acting as its admin."""
    return org_ctx()


@pytest.fixture
def other_ctx():
    ctx = org_ctx(other_org_admin())
    assert ctx.org_id == OTHER_ORG_ID
    return ctx


@pytest.fixture
def client_factory(db_session):
    """Factory returning an async httpx client bound to the real app as ``user``."""
    from src.main import app
    from src.middleware.auth import get_current_user

    async def _make(user):
        async def _get_db():
            yield db_session

        async def _get_current_user():
            return user

        app.dependency_overrides[get_db] = _get_db
        app.dependency_overrides[get_current_user] = _get_current_user
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        return httpx.AsyncClient(transport=transport, base_url="http://test")

    yield _make

    app.dependency_overrides.clear()
