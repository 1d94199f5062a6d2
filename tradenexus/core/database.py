"""Async SQLAlchemy engine, session factory and database client.

The database client tracks an offline mode: when the first connection attempt
at startup fails, the process keeps serving what it can and every request that
needs the database is refused with ``DatabaseUnavailableError``.
"""

from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from tradenexus.core.config import DatabaseSettings, settings
from tradenexus.core.exceptions import DatabaseUnavailableError
from tradenexus.utils.logging import get_logger

LOGGER = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def build_engine(db_settings: DatabaseSettings) -> AsyncEngine:
    """Create an async engine for the configured database."""
    kwargs: Dict[str, Any] = {"echo": db_settings.echo, "future": True}
    if not db_settings.is_sqlite:
        kwargs.update(
            pool_size=db_settings.pool_size,
            max_overflow=db_settings.max_overflow,
            pool_pre_ping=True,
            # Disable prepared statement cache for PgBouncer compatibility
            connect_args={"statement_cache_size": 0},
        )
    return create_async_engine(db_settings.connection_url, **kwargs)


engine = build_engine(settings.db)

async_session_maker = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class DatabaseClient:
    """PostgreSQL database client with connection and migration management."""

    def __init__(self, engine: AsyncEngine):
        """Initialize database client.

        Args:
            engine: SQLAlchemy async engine
        """
        self.engine = engine
        self._connected = False
        self._offline = False

    async def connect(self) -> bool:
        """Test database connection."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

            self._connected = True
            self._offline = False
            LOGGER.info("Database connection successful")
            return True

        except Exception:
            self._connected = False
            LOGGER.error("Database connection failed", exc_info=True)
            raise

    async def disconnect(self) -> None:
        """Close database connection."""
        try:
            await self.engine.dispose()
            self._connected = False
            LOGGER.info("Database connection closed")
        except Exception as e:
            LOGGER.error(
                "Error closing database connection",
                exc_info=True,
                extra={"error": str(e)}
            )

    async def create_tables(self) -> None:
        """Create all database tables from SQLAlchemy models.

        This will create tables that don't exist without dropping existing ones.
        """
        # Models must be registered on Base.metadata before create_all
        from tradenexus.database import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        LOGGER.info("Database tables created/verified successfully")

    def mark_offline(self, reason: str) -> None:
        """Put the client into offline mode for the rest of the process lifetime."""
        self._connected = False
        self._offline = True
        LOGGER.warning(
            "Database unavailable - running in offline mode",
            extra={"reason": reason},
        )

    def ensure_available(self) -> None:
        """Raise if the database is in offline mode."""
        if self._offline:
            raise DatabaseUnavailableError("Database is running in offline mode")

    async def health_check(self) -> dict:
        """Check database health."""
        if self._offline:
            return {
                "status": "disconnected",
                "connected": False,
                "message": "Database not connected, running in offline mode",
            }

        try:
            async with self.engine.connect() as conn:
                val = await conn.scalar(text("SELECT 1"))

            self._connected = True
            return {
                "status": "connected",
                "connected": True,
                "message": "Database connection OK",
                "latency_test": "passed" if val == 1 else "failed",
            }

        except Exception as e:
            self._connected = False
            LOGGER.error("Database health check failed", extra={"error": str(e)})
            return {
                "status": "error",
                "connected": False,
                "message": "Database health check failed",
            }

    @property
    def is_connected(self) -> bool:
        """Check if database is connected."""
        return self._connected

    @property
    def is_offline(self) -> bool:
        return self._offline


# Global database client instance
db_client = DatabaseClient(engine)


async def init_database(auto_migrate: bool = True) -> bool:
    """Initialize database connection and optionally create tables.

    A failure switches the client to offline mode instead of aborting startup.

    Args:
        auto_migrate: Whether to create missing tables on startup

    Returns:
        True when the database is usable, False when running offline
    """
    try:
        LOGGER.info("Initializing database connection...")
        await db_client.connect()

        if auto_migrate:
            await db_client.create_tables()

        LOGGER.info("Database initialization completed")
        return True

    except Exception as e:
        db_client.mark_offline(str(e))
        return False


async def close_database() -> None:
    """Close database connection."""
    LOGGER.info("Closing database connection...")
    await db_client.disconnect()
