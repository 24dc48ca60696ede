"""Relational database setup with SQLAlchemy's asyncio extension."""

import logging
from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all WineCellar tables."""

    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Database handle: one engine plus its session factory.

    Opened once at startup by the application lifespan, passed to request
    handlers through ``get_db`` and closed at shutdown.
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, echo=echo)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        """Create any missing tables."""
        # Import models so they register on Base.metadata
        import winecellar.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    def session(self) -> AsyncSession:
        """Open a new session; use it as an async context manager."""
        return self.session_maker()

    async def close(self) -> None:
        """Dispose of the engine's connection pool."""
        await self.engine.dispose()


async def init_db(url: str, echo: bool = False) -> Database:
    """Open the database and make sure the schema exists.

    Args:
        url: SQLAlchemy async database URL, e.g. ``sqlite+aiosqlite:///data/cellar.db``.
        echo: Log every SQL statement.

    Returns:
        The opened Database handle.
    """
    db = Database(url, echo=echo)
    await db.create_all()
    logger.info("Database ready: %s", db.engine.url.render_as_string(hide_password=True))
    return db


async def close_db(db: Database | None) -> None:
    """Close a database handle opened by ``init_db``."""
    if db is not None:
        await db.close()


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request.

    Leaving the session context without a commit rolls back any pending work.
    """
    database: Database = request.app.state.db
    async with database.session() as session:
        yield session
