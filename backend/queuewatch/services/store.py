"""Read helpers that translate driver errors into the dashboard error taxonomy."""

from __future__ import annotations

from collections.abc import Awaitable, Iterable
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import ValidationError
from sqlalchemy import func, literal
from sqlalchemy.exc import DBAPIError, InterfaceError, SQLAlchemyError
from sqlmodel import SQLModel, select

from queuewatch.core.errors import BackingStoreUnavailable, QueryFailure
from queuewatch.core.logging import get_logger
from queuewatch.db.session import ensure_store_available

if TYPE_CHECKING:
    from datetime import timedelta

    from sqlalchemy import ColumnElement
    from sqlmodel.ext.asyncio.session import AsyncSession
    from sqlmodel.sql.expression import SelectOfScalar

SchemaT = TypeVar("SchemaT", bound=SQLModel)
ResultT = TypeVar("ResultT")

logger = get_logger(__name__)


def _is_connection_error(exc: SQLAlchemyError) -> bool:
    """Whether `exc` means the store itself is gone, not that one statement failed."""
    if isinstance(exc, InterfaceError):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


class StoreReader:
    """Session wrapper used by resolvers; every query goes through `all`/`first`."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def ensure_available(self) -> None:
        ensure_store_available(self.session)

    async def ping(self) -> None:
        """Round-trip a trivial query; any failure here means the store is unreachable."""
        try:
            await self.session.exec(select(literal(1)))
        except SQLAlchemyError as exc:
            logger.warning("store.ping.failed", extra={"error": str(exc)})
            raise BackingStoreUnavailable("Database unavailable") from exc

    async def all(self, statement: SelectOfScalar[Any] | Any) -> list[Any]:
        try:
            result = await self.session.exec(statement)
            return list(result.all())
        except SQLAlchemyError as exc:
            if _is_connection_error(exc):
                logger.warning("store.query.unavailable", extra={"error": str(exc)})
                raise BackingStoreUnavailable("Database unavailable") from exc
            # Statement-level failures (missing table or column) stay local to the query.
            logger.warning("store.query.failed", extra={"error": str(exc)})
            raise QueryFailure("Query failed") from exc
        except ValueError as exc:
            # Unparseable column values (e.g. malformed timestamps) surface here.
            logger.warning("store.query.failed", extra={"error": str(exc)})
            raise QueryFailure("Query returned malformed rows") from exc

    async def first(self, statement: SelectOfScalar[Any] | Any) -> Any | None:
        rows = await self.all(statement.limit(1))
        return rows[0] if rows else None


def to_schema(schema: type[SchemaT], row: Any, **extra: Any) -> SchemaT:
    """Validate one row (ORM object or result row) into a typed read schema."""
    try:
        if extra:
            data = dict(row._mapping) if hasattr(row, "_mapping") else row.model_dump()
            data.update(extra)
            return schema.model_validate(data)
        return schema.model_validate(row, from_attributes=True)
    except ValidationError as exc:
        logger.warning(
            "store.row.invalid",
            extra={"schema": schema.__name__, "errors": exc.error_count()},
        )
        raise QueryFailure(f"Malformed {schema.__name__} row") from exc


def to_schemas(schema: type[SchemaT], rows: Iterable[Any]) -> list[SchemaT]:
    return [to_schema(schema, row) for row in rows]


async def recover(
    awaitable: Awaitable[ResultT],
    *,
    section: str,
    default: ResultT,
) -> ResultT:
    """Await a section query, substituting `default` when its rows are malformed."""
    try:
        return await awaitable
    except QueryFailure as exc:
        logger.warning("store.section.degraded", extra={"section": section, "error": exc.message})
        return default


def sqlite_cutoff(window: timedelta) -> ColumnElement[Any]:
    """`datetime('now', '-N seconds')`, evaluated by the store in UTC."""
    return func.datetime("now", f"-{int(window.total_seconds())} seconds")


def normalized(column: Any) -> ColumnElement[Any]:
    """Wrap a timestamp column in `datetime()` so mixed `T`/space formats compare correctly."""
    return func.datetime(column)
