"""
BoxIT Backend — Database Session Management
============================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   `Database` owns one engine and its session factory. `create_app()`
       builds it once and stores it on `app.state.database`; the
       `get_db_session` dependency opens one session per request that
       commits on success and rolls back on any error.

Connection Pooling Strategy (PostgreSQL):
    pool_size / max_overflow from settings
    pool_pre_ping:     validates connections before use
    pool_recycle=3600: recycles connections every hour

SQLite (tests, local development) uses SQLAlchemy's default pool and has
foreign key enforcement switched on per connection so ON DELETE CASCADE
behaves as on PostgreSQL.
"""

import logging
from typing import AsyncGenerator, Awaitable, Callable

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from boxit.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object between the application, `Database.create_all`
    and Alembic autogeneration.
    """
    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Engine plus session factory for one application instance."""

    def __init__(self, url: str, *, pool_size: int = 10, max_overflow: int = 10,
                 pool_pre_ping: bool = True, echo: bool = False):
        engine_kwargs = {"echo": echo}
        if not url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=pool_pre_ping,
                pool_recycle=3600,
            )
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        if url.startswith("sqlite"):
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        # expire_on_commit=False: response models are built from ORM objects
        # after the service flushes, without further lazy loads
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            echo=settings.log_level == "DEBUG",
        )

    async def create_all(self) -> None:
        """Create every table known to `Base.metadata` (idempotent)."""
        # Models must be imported so their tables are registered.
        import boxit.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured")

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e))
            return False

    async def dispose(self) -> None:
        """Close every pooled connection (application shutdown)."""
        await self.engine.dispose()


# Session.info key holding callbacks queued by run_after_commit
AFTER_COMMIT = "boxit.after_commit"


def run_after_commit(session: AsyncSession, callback: Callable[[], Awaitable[None]]) -> None:
    """
    Queue `callback` to run once the request transaction has committed.

    Callbacks are dropped when the transaction rolls back. They must not
    raise: the data they act on is already committed.
    """
    session.info.setdefault(AFTER_COMMIT, []).append(callback)


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    The whole request runs in one transaction: commit when the handler
    returns, roll back and re-raise on any exception, always close.
    Label reconciliation relies on this to be atomic. Callbacks queued
    with run_after_commit (image deletes) run only after a successful
    commit.
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            session.info.pop(AFTER_COMMIT, None)
            await session.rollback()
            raise
        finally:
            await session.close()

        for callback in session.info.pop(AFTER_COMMIT, []):
            await callback()
