"""
Async database engine and session factory.

Uses SQLAlchemy 2.x async engines: asyncpg for PostgreSQL deployments,
aiosqlite for local and single-node installs. Provides module-level
engine and session factory singletons, plus an async generator for
FastAPI dependency injection.

CHANGELOG:
- 2026-10-18: Initial creation
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from pumpwatch.db.models import Base

# Module-level singletons, initialized lazily via init_engine().
async_engine: AsyncEngine | None = None
async_session_factory: async_sessionmaker[AsyncSession] | None = None


def create_engine(database_url: str) -> AsyncEngine:
    """Create an async SQLAlchemy engine.

    Args:
        database_url: Async driver URL, e.g. ``postgresql+asyncpg://...``
            or ``sqlite+aiosqlite:///pumpwatch.db``.

    Returns:
        AsyncEngine: Configured async engine.
    """
    return create_async_engine(database_url, echo=False, pool_pre_ping=True)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to ``engine``."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def init_engine(database_url: str) -> async_sessionmaker[AsyncSession]:
    """Initialize the module-level async engine and session factory.

    Safe to call multiple times; subsequent calls are no-ops.

    Returns:
        async_sessionmaker: The process-wide session factory.
    """
    global async_engine, async_session_factory  # noqa: PLW0603
    if async_engine is None:
        async_engine = create_engine(database_url)
        async_session_factory = create_session_factory(async_engine)
    assert async_session_factory is not None
    return async_session_factory


async def dispose_engine() -> None:
    """Dispose the module-level engine and forget the singletons."""
    global async_engine, async_session_factory  # noqa: PLW0603
    if async_engine is not None:
        await async_engine.dispose()
    async_engine = None
    async_session_factory = None


async def create_all(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet.

    Used for SQLite installs and tests; PostgreSQL deployments run the
    Alembic migrations instead.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session from the module-level factory.

    The session is automatically closed after the request completes.

    Yields:
        AsyncSession: An async SQLAlchemy session.
    """
    assert async_session_factory is not None, "Session factory not initialized"
    async with async_session_factory() as session:
        yield session
