"""Database engine, session factory, and backing-store availability checks.

The queue store is owned by the external orchestration system, so nothing here
creates tables or runs migrations. The engine is only ever used for reads.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession

from queuewatch import models as _models
from queuewatch.core.config import settings
from queuewatch.core.errors import BackingStoreUnavailable
from queuewatch.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from sqlalchemy.engine import URL

# Import model modules so SQLModel metadata is fully registered at startup.
_MODEL_REGISTRY = _models


def _normalize_database_url(database_url: str) -> str:
    if "://" not in database_url:
        return database_url
    scheme, rest = database_url.split("://", 1)
    if scheme == "sqlite":
        return f"sqlite+aiosqlite://{rest}"
    return database_url


async_engine: AsyncEngine = create_async_engine(
    _normalize_database_url(settings.database_url),
    pool_pre_ping=True,
)
async_session_maker = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
logger = get_logger(__name__)


def sqlite_store_path(url: URL) -> Path | None:
    """Return the on-disk SQLite file for `url`, or None for memory/non-SQLite stores."""
    if url.get_backend_name() != "sqlite":
        return None
    database = url.database
    if not database or database == ":memory:" or database.startswith("file:"):
        return None
    return Path(database)


def ensure_store_available(session: AsyncSession) -> None:
    """Fail fast when the backing SQLite file does not exist.

    SQLite silently creates a missing database file on connect, which would turn
    a misconfigured path into an empty dashboard instead of an error.
    """
    bind = session.bind
    url = getattr(bind, "url", None)
    if url is None:
        return
    store_path = sqlite_store_path(make_url(str(url)))
    if store_path is not None and not store_path.exists():
        logger.warning("db.store.missing", extra={"store_path": str(store_path)})
        raise BackingStoreUnavailable("Database not found")


async def check_store() -> bool:
    """Log whether the configured store is reachable; used at startup only."""
    store_path = sqlite_store_path(async_engine.url)
    if store_path is not None and not store_path.exists():
        logger.warning("db.store.missing", extra={"store_path": str(store_path)})
        return False
    try:
        async with async_engine.connect():
            pass
    except SQLAlchemyError:
        logger.exception("db.store.unreachable")
        return False
    logger.info("db.store.available", extra={"backend": async_engine.url.get_backend_name()})
    return True


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a request-scoped async DB session with safe rollback on errors."""
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            in_txn = False
            try:
                in_txn = bool(session.in_transaction())
            except SQLAlchemyError:
                logger.exception("Failed to inspect session transaction state.")
            if in_txn:
                try:
                    await session.rollback()
                except SQLAlchemyError:
                    logger.exception("Failed to rollback session after request error.")
