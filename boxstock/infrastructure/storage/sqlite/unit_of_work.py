"""
Per-product unit of work over SQLite.

Each stock mutation runs as: per-product asyncio lock, then a pooled
connection in ``BEGIN IMMEDIATE``, then stores bound to that connection.
The lock orders writers inside this process; the immediate transaction
orders them against other processes sharing the database file.
"""

import asyncio
import weakref
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

import aiosqlite
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from boxstock.config import get_logger, get_settings
from boxstock.core.interfaces.unit_of_work import IUnitOfWork, StockSession
from boxstock.infrastructure.storage.sqlite.audit_store import SQLiteAuditStore
from boxstock.infrastructure.storage.sqlite.connection import get_exclusive_transaction
from boxstock.infrastructure.storage.sqlite.movement_store import SQLiteMovementStore
from boxstock.infrastructure.storage.sqlite.product_store import SQLiteProductStore
from boxstock.infrastructure.storage.sqlite.sale_store import SQLiteSaleStore

logger = get_logger(__name__)

T = TypeVar("T")

# Locks are bound to the loop they were created in
_locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, dict[str, asyncio.Lock]]" = (
    weakref.WeakKeyDictionary()
)


def product_lock(product_id: str) -> asyncio.Lock:
    """Process-wide lock for one product on the running loop."""
    loop = asyncio.get_running_loop()
    locks = _locks.setdefault(loop, {})
    lock = locks.get(product_id)
    if lock is None:
        lock = locks[product_id] = asyncio.Lock()
    return lock


def is_lock_timeout(exc: BaseException) -> bool:
    return isinstance(exc, aiosqlite.OperationalError) and "locked" in str(exc).lower()


def _log_retry(retry_state: RetryCallState) -> None:
    logger.warning(
        "database_locked_retrying",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
    )


async def run_with_retry(
    func: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    backoff_base: float = 0.1,
) -> T:
    """
    Run an async DB operation, retrying when SQLite reports the database locked.

    Business conflicts are never retried; only lock timeouts are.
    """
    retrying = retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=backoff_base, min=backoff_base),
        retry=retry_if_exception(is_lock_timeout),
        before_sleep=_log_retry,
        reraise=True,
    )
    return await retrying(func)()


class SQLiteUnitOfWork(IUnitOfWork):
    """Serialized, atomic stock mutations on the global connection pool."""

    def __init__(
        self,
        retry_attempts: int | None = None,
        retry_backoff: float | None = None,
    ):
        settings = get_settings()
        self._attempts = retry_attempts or settings.inventory.lock_retry_attempts
        self._backoff = retry_backoff or settings.inventory.lock_retry_backoff

    @asynccontextmanager
    async def transaction(self, product_id: str) -> AsyncIterator[StockSession]:
        async with product_lock(product_id):
            async with get_exclusive_transaction() as conn:
                yield StockSession(
                    products=SQLiteProductStore(conn),
                    sales=SQLiteSaleStore(conn),
                    movements=SQLiteMovementStore(conn),
                    audits=SQLiteAuditStore(conn),
                )

    async def run(
        self,
        product_id: str,
        work: Callable[[StockSession], Awaitable[T]],
    ) -> T:
        async def attempt() -> T:
            async with self.transaction(product_id) as session:
                return await work(session)

        return await run_with_retry(
            attempt, attempts=self._attempts, backoff_base=self._backoff
        )
