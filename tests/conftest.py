"""
Shared test fixtures: stores, service, FastAPI test client.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from escrow.config import Settings
from escrow.database import init_db
from escrow.main import app
from escrow.schemas.project import Project, ProjectCreateRequest
from escrow.services.escrow import EscrowService, get_escrow_service
from escrow.services.file_storage import DiskFileStorage
from escrow.store.memory import MemoryStore
from escrow.store.sql import SqlStore


# ── Sample Data ─────────────────────────────────────────

SAMPLE_PROJECT = {
    "title": "Bracket",
    "description": "Wall bracket for a floating shelf",
    "amount": "100.00",
    "buyerEmail": "b@x.com",
    "createdBy": "buyer",
}


@pytest.fixture
def create_request():
    return ProjectCreateRequest(**SAMPLE_PROJECT)


def make_project(**overrides) -> Project:
    """Build a Project record directly, for the pure lifecycle/access tests."""
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    fields = {
        "id": "p-1",
        "title": "Bracket",
        "description": "Wall bracket",
        "amount": Decimal("100.00"),
        "buyer_email": "b@x.com",
        "created_by": "buyer",
        "created_at": now,
        "updated_at": now,
    }
    fields.update(overrides)
    return Project.model_validate(fields)


# ── Settings ────────────────────────────────────────────

@pytest.fixture
def test_settings(tmp_path):
    return Settings(upload_dir=str(tmp_path / "uploads"), storage_backend="memory")


# ── Stores ──────────────────────────────────────────────

@pytest_asyncio.fixture(params=["memory", "sql"])
async def store(request, tmp_path):
    """Every store contract test runs against both backends."""
    if request.param == "memory":
        yield MemoryStore()
        return

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'escrow.db'}", echo=False)
    await init_db(engine)
    yield SqlStore(async_sessionmaker(engine, expire_on_commit=False))
    await engine.dispose()


# ── Service ─────────────────────────────────────────────

@pytest.fixture
def service(store, test_settings):
    return EscrowService(store, DiskFileStorage(test_settings.upload_dir), config=test_settings)


@pytest.fixture
def memory_service(test_settings):
    return EscrowService(MemoryStore(), DiskFileStorage(test_settings.upload_dir), config=test_settings)


# ── FastAPI Client ──────────────────────────────────────

@pytest_asyncio.fixture()
async def client(memory_service):
    """FastAPI test client with an isolated in-memory service injected."""
    app.dependency_overrides[get_escrow_service] = lambda: memory_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
