"""
FastAPI dependency injection providers.

Provides database sessions, the device store, settings and the
per-device lock registry for use with FastAPI's Depends() mechanism.

CHANGELOG:
- 2026-10-18: Initial creation
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pumpwatch.config import Settings
from pumpwatch.db.repository import DeviceStore
from pumpwatch.db.session import get_async_session
from pumpwatch.services.locks import DeviceLocks


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session.

    Yields:
        AsyncSession: An async SQLAlchemy session.
    """
    async for session in get_async_session():
        yield session


async def get_store(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DeviceStore:
    """Wrap the request's database session in a DeviceStore."""
    return DeviceStore(db)


def get_settings(request: Request) -> Settings:
    """Return the settings loaded at startup."""
    return request.app.state.settings


def get_locks(request: Request) -> DeviceLocks:
    """Return the process-wide per-device lock registry."""
    return request.app.state.locks


Store = Annotated[DeviceStore, Depends(get_store)]
AppSettings = Annotated[Settings, Depends(get_settings)]
Locks = Annotated[DeviceLocks, Depends(get_locks)]
