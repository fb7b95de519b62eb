"""
Shared test fixtures for pumpwatch tests.

Every test runs in its own temporary directory with a fresh SQLite
database (aiosqlite driver) and a devices file registering ``D1`` and
``D2``. The Redis cache is disabled unless a test patches it in.

CHANGELOG:
- 2026-10-18: Initial creation
"""

from __future__ import annotations

import json
from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pumpwatch.config import Settings
from pumpwatch.db.repository import DeviceStore
from pumpwatch.db.session import create_all, create_engine, create_session_factory
from pumpwatch.services.locks import DeviceLocks
from tests.factories import DEVICE_ID, OTHER_DEVICE_ID

# All Settings environment variable names, used for cleanup.
_ALL_ENV_VARS = (
    "DATABASE_URL",
    "REDIS_URL",
    "SESSION_TIMEOUT_S",
    "DISCHARGE_COEFFICIENT",
    "DISCARD_ZERO_DURATION",
    "DEDUP_SAMPLES",
    "SWEEP_INTERVAL_S",
    "DEVICES_FILE",
    "EVENT_PAGE_SIZE",
    "CACHE_TTL_S",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> dict[str, str]:
    """Isolate every test: clean env, temp cwd, temp database and devices file.

    Changing into tmp_path keeps Pydantic BaseSettings from loading a
    developer's .env file.
    """
    for var in _ALL_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)

    devices_file = tmp_path / "devices.json"
    devices_file.write_text(json.dumps([DEVICE_ID, OTHER_DEVICE_ID]))

    env = {
        "DATABASE_URL": f"sqlite+aiosqlite:///{tmp_path / 'pumpwatch.db'}",
        "DEVICES_FILE": str(devices_file),
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def settings(_test_env: dict[str, str]) -> Settings:
    """Settings with defaults: 60s timeout, coefficient 1.0, dedup on."""
    return Settings()


@pytest.fixture()
def locks() -> DeviceLocks:
    """A fresh per-device lock registry."""
    return DeviceLocks()


@pytest_asyncio.fixture()
async def session_factory(
    settings: Settings,
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory over a migrated temp database with D1 and D2 registered."""
    engine = create_engine(settings.database_url)
    await create_all(engine)
    factory = create_session_factory(engine)
    async with factory() as db:
        store = DeviceStore(db)
        async with store.transaction():
            await store.register_devices([DEVICE_ID, OTHER_DEVICE_ID])
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture()
async def store(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[DeviceStore, None]:
    """A DeviceStore over its own session."""
    async with session_factory() as db:
        yield DeviceStore(db)


@pytest.fixture()
def client(_test_env: dict[str, str]) -> Generator[TestClient, None, None]:
    """Create a FastAPI TestClient for integration testing.

    Uses a context manager so the lifespan runs: tables are created in the
    temp SQLite database and D1/D2 are seeded from the devices file.
    """
    from pumpwatch.api.main import app

    with TestClient(app) as test_client:
        yield test_client
