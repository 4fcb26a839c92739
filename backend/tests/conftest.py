"""Pytest configuration and fixtures for ReportStudio tests.

Provides an in-memory SQLite database, the report store and wizard
registry on top of it, an API client with both swapped in, and an
in-memory FakeStore for controller-level tests.
"""

import asyncio
import uuid
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import reportstudio.models  # noqa: F401  register tables on Base
from reportstudio.auth.jwt import create_access_token
from reportstudio.database import Base
from reportstudio.deps import get_registry, get_store
from reportstudio.main import app
from reportstudio.services.registry import WizardRegistry
from reportstudio.services.store import SqlReportStore, StoreResult

ORG_ID = "org-test-001"
OTHER_ORG_ID = "org-test-002"

# Valid step-1 payload for an annual report
SETUP = {
    "title": "Annual Report 2024-25",
    "financial_year": "FY 2024-25",
    "template_id": "modern",
}


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """In-memory SQLite engine shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def store(session_factory) -> SqlReportStore:
    return SqlReportStore(session_factory)


@pytest_asyncio.fixture
async def registry(store) -> AsyncGenerator[WizardRegistry, None]:
    """Registry whose generation runs finish in milliseconds."""
    registry = WizardRegistry(store, generation_time_scale=0.001)
    yield registry
    await registry.shutdown()


@pytest_asyncio.fixture
async def client(store, registry) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with the store and registry overridden."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_registry] = lambda: registry

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def setup_payload() -> dict:
    return dict(SETUP)


# ── Auth Fixtures ────────────────────────────────────────────────

@pytest.fixture
def test_token() -> str:
    return create_access_token(ORG_ID)


@pytest.fixture
def auth_headers(test_token: str) -> dict:
    """Create authorization headers with test token."""
    return {"Authorization": f"Bearer {test_token}"}


@pytest.fixture
def other_org_headers() -> dict:
    return {"Authorization": f"Bearer {create_access_token(OTHER_ORG_ID)}"}


# ── In-memory Store ──────────────────────────────────────────────

class FakeStore:
    """DataStore double that counts calls and can fail or stall."""

    def __init__(self, *, fail: bool = False, delay: float = 0.0):
        self.rows: dict[str, dict] = {}
        self.fail = fail
        self.delay = delay
        self.creates = 0
        self.updates = 0

    async def _wait(self):
        if self.delay:
            await asyncio.sleep(self.delay)

    async def create(self, table, record):
        self.creates += 1
        await self._wait()
        if self.fail:
            return StoreResult(error="store offline")
        row_id = str(uuid.uuid4())
        self.rows[row_id] = {"id": row_id, **record}
        return StoreResult(data=dict(self.rows[row_id]))

    async def update(self, table, record_id, partial):
        self.updates += 1
        await self._wait()
        if self.fail:
            return StoreResult(error="store offline")
        if record_id not in self.rows:
            return StoreResult(error=f"{table} row not found: {record_id}")
        self.rows[record_id].update(partial)
        return StoreResult()

    async def query(self, table, filters=None, order_by=None, descending=False, limit=None):
        if self.fail:
            return StoreResult(error="store offline")
        rows = [
            dict(r) for r in self.rows.values()
            if all(r.get(k) == v for k, v in (filters or {}).items())
        ]
        return StoreResult(data=rows[:limit] if limit else rows)

    async def delete(self, table, id_or_ids):
        ids = [id_or_ids] if isinstance(id_or_ids, str) else id_or_ids
        for row_id in ids:
            self.rows.pop(row_id, None)
        return StoreResult()


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def make_store():
    """Factory for FakeStore variants (failing, slow)."""
    return FakeStore


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: API endpoint tests")
    config.addinivalue_line("markers", "integration: Integration tests")
