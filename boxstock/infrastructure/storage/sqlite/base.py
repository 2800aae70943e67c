"""Shared plumbing for SQLite stores."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal, InvalidOperation

import aiosqlite

from boxstock.core.entities.product import utcnow
from boxstock.core.exceptions import DatabaseError
from boxstock.infrastructure.storage.sqlite.connection import get_connection, get_transaction


class SQLiteStore:
    """
    Base for stores that can run standalone or inside a unit of work.

    Given a connection, every statement runs on it and committing is left to
    whoever opened the transaction. Without one, reads borrow a pooled
    connection and writes run in their own short transaction.
    """

    def __init__(self, conn: aiosqlite.Connection | None = None):
        self._conn = conn

    @asynccontextmanager
    async def _reader(self) -> AsyncIterator[aiosqlite.Connection]:
        if self._conn is not None:
            yield self._conn
        else:
            async with get_connection() as conn:
                yield conn

    @asynccontextmanager
    async def _writer(self) -> AsyncIterator[aiosqlite.Connection]:
        if self._conn is not None:
            yield self._conn
        else:
            async with get_transaction() as conn:
                yield conn


def decimal_text(value: Decimal) -> str:
    """Fixed-point TEXT for a Decimal column; never scientific notation."""
    return format(value, "f")


def to_decimal(value: str | int | float | None, column: str) -> Decimal:
    """
    Parse a TEXT column back into an exact Decimal.

    Raises:
        DatabaseError: If the stored value is missing or not a finite number
    """
    try:
        parsed = Decimal(str(value)) if value is not None else None
    except InvalidOperation:
        parsed = None
    if parsed is None or not parsed.is_finite():
        raise DatabaseError("decode", f"{column} holds {value!r}, expected a decimal")
    return parsed


def to_datetime(value: str | None) -> datetime:
    if value:
        try:
            return datetime.fromisoformat(value)
        except (ValueError, TypeError):
            pass
    return utcnow()


def to_optional_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    return to_datetime(value)


def where_clause(filters: dict[str, object]) -> tuple[str, list]:
    """Build ``WHERE a = ? AND b = ?`` from non-None filters."""
    clauses = []
    params: list = []
    for column, value in filters.items():
        if value is None:
            continue
        clauses.append(f"{column} = ?")
        params.append(getattr(value, "value", value))
    if not clauses:
        return "", params
    return "WHERE " + " AND ".join(clauses), params
