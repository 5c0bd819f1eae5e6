"""
Async database engine and session management.

Provides:
- A Database holder owning the async engine and session factory
- Session-per-operation via the session() async context manager
- SQLite pragmas (WAL, busy timeout, foreign keys) applied on connect
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..config import get_settings
from ..core.logging import get_logger
from .tables import Base

logger = get_logger(__name__)


def _optimize_sqlite_connection(dbapi_connection, connection_record):
    """Apply SQLite-specific settings when a connection is created."""
    cursor = dbapi_connection.cursor()
    # WAL lets page workers read while another one writes
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=30000")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


class Database:
    """Owns the async engine and hands out sessions."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args = {"timeout": 30}
        self.engine: AsyncEngine = create_async_engine(
            url, echo=echo, connect_args=connect_args
        )
        if url.startswith("sqlite"):
            event.listen(self.engine.sync_engine, "connect", _optimize_sqlite_connection)
        self.session_factory = async_sessionmaker(
            self.engine, expire_on_commit=False, autoflush=False
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Async context manager for database sessions.

        Rolls back on any error and always closes the session.

        Usage:
            async with database.session() as session:
                session.add(row)
                await session.commit()
        """
        session = self.session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            # Callers decide whether this is a failure (duplicates are expected)
            logger.debug("database_session_rollback", error=str(e))
            await session.rollback()
            raise
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def init(self):
        """Create all tables. Does not run migrations."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database_initialized", url=self.url)

    async def check_connection(self) -> bool:
        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error("database_connection_failed", error=str(e))
            return False

    async def dispose(self):
        await self.engine.dispose()


# Singleton instance
_database: Optional[Database] = None


def get_database() -> Database:
    """Get singleton Database built from settings."""
    global _database
    if _database is None:
        _database = Database(get_settings().database_url)
    return _database


async def init_database():
    """Create tables on the singleton database."""
    database = get_database()
    await database.init()
    return database
