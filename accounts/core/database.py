"""Async database engine and session factory construction."""

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from accounts.core.config import Settings
from accounts.models import Base


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Build the process-wide engine; called once at startup and passed down."""
    return create_async_engine(
        settings.DATABASE_URL,
        pool_pre_ping=True,
        echo=settings.DEBUG,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Rows are handed back to callers after commit, so keep loaded attributes.
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet (dev/test; prod uses alembic)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def check_db_connected(session_factory: async_sessionmaker[AsyncSession]) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
        return True
    except (SQLAlchemyError, OSError):
        return False
