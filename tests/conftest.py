"""Pytest configuration and shared fixtures."""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("SIMULATED_LATENCY_SECONDS", "0")
os.environ.setdefault("RAPIDAPI_KEY", "")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from tradenexus.core.config import settings
from tradenexus.core.database import Base
from tradenexus.core.dependencies import get_provider, get_queue_service, get_session_maker
from tradenexus.core.jwt import jwt_verifier
from tradenexus.database import models  # noqa: F401
from tradenexus.main import app
from tradenexus.services.memory_service import MemoryService
from tradenexus.services.providers import SimulatedCrawlerProvider
from tradenexus.services.queue_service import QueueService


@pytest.fixture
def session_maker(tmp_path) -> async_sessionmaker[AsyncSession]:
    """Session factory over a fresh SQLite file with every table created.

    Returns:
        async_sessionmaker: Factory bound to the test database
    """
    db_path = tmp_path / "tradenexus-test.db"

    sync_engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def memory_service(session_maker) -> MemoryService:
    return MemoryService(session_maker)


@pytest.fixture
def provider() -> SimulatedCrawlerProvider:
    return SimulatedCrawlerProvider(latency_seconds=0)


@pytest.fixture
def offline_queue(session_maker, provider) -> QueueService:
    """Queue service that never connected, as after a failed startup."""
    return QueueService(settings, session_maker, provider)


@pytest.fixture
def test_client(session_maker, provider, offline_queue) -> TestClient:
    """FastAPI test client wired to the test database and an offline queue.

    Returns:
        TestClient: FastAPI test client instance
    """
    app.dependency_overrides[get_session_maker] = lambda: session_maker
    app.dependency_overrides[get_provider] = lambda: provider
    app.dependency_overrides[get_queue_service] = lambda: offline_queue
    return TestClient(app)


@pytest.fixture
def auth_headers() -> dict:
    token = jwt_verifier.create_token("user-1", email="buyer@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    """Ensure FastAPI dependency overrides are reset between tests."""
    app.dependency_overrides = {}
    yield
    app.dependency_overrides = {}
