"""
Pooled aiosqlite connections for the stock database.

Stores borrow a connection per call; stock mutations borrow one inside
``BEGIN IMMEDIATE`` so the write lock is held from the first read of the
product row until the ledger entries and new stock are committed.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

import aiosqlite

from boxstock.config import get_logger, get_settings

logger = get_logger(__name__)

# Applied to every pooled connection; busy_timeout is added per pool
CONNECTION_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
)


@dataclass(frozen=True)
class PoolStats:
    size: int
    idle: int

    @property
    def in_use(self) -> int:
        return self.size - self.idle


class ConnectionPool:
    """Fixed set of connections to one database file, lent out through a queue."""

    def __init__(self, db_path: Path, pool_size: int = 5, busy_timeout: int = 30000):
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout
        self._idle: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue()
        self._opened: list[aiosqlite.Connection] = []
        self._open_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return bool(self._opened)

    def stats(self) -> PoolStats:
        return PoolStats(size=len(self._opened), idle=self._idle.qsize())

    async def open(self) -> None:
        async with self._open_lock:
            if self.is_open:
                return
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            for _ in range(self.pool_size):
                conn = await aiosqlite.connect(self.db_path)
                for pragma in CONNECTION_PRAGMAS:
                    await conn.execute(pragma)
                await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout}")
                conn.row_factory = aiosqlite.Row
                self._opened.append(conn)
                self._idle.put_nowait(conn)
            logger.info("sqlite_pool_opened", db_path=str(self.db_path), size=self.pool_size)

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        if not self.is_open:
            await self.open()
        conn = await self._idle.get()
        try:
            yield conn
        finally:
            # Never hand the next borrower a half-finished transaction
            if conn.in_transaction:
                await conn.rollback()
            self._idle.put_nowait(conn)

    @asynccontextmanager
    async def transaction(self, immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
        """
        Borrow a connection and commit on exit, rolling back on any error.

        With ``immediate`` the write lock is taken up front (``BEGIN IMMEDIATE``)
        instead of at the first write.
        """
        async with self.acquire() as conn:
            if immediate:
                await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                await conn.rollback()
                raise
            await conn.commit()

    def exclusive_transaction(self):
        return self.transaction(immediate=True)

    async def close(self) -> None:
        async with self._open_lock:
            while self._opened:
                await self._opened.pop().close()
            self._idle = asyncio.Queue()
            logger.info("sqlite_pool_closed", db_path=str(self.db_path))


_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """The process-wide pool for the configured database, opened on first use."""
    global _pool
    if _pool is None:
        storage = get_settings().storage
        _pool = ConnectionPool(
            storage.db_path,
            pool_size=storage.pool_size,
            busy_timeout=storage.busy_timeout,
        )
    await _pool.open()
    return _pool


async def close_pool() -> None:
    global _pool
    pool, _pool = _pool, None
    if pool is not None:
        await pool.close()


@asynccontextmanager
async def get_connection() -> AsyncIterator[aiosqlite.Connection]:
    async with (await get_pool()).acquire() as conn:
        yield conn


@asynccontextmanager
async def get_transaction() -> AsyncIterator[aiosqlite.Connection]:
    async with (await get_pool()).transaction() as conn:
        yield conn


@asynccontextmanager
async def get_exclusive_transaction() -> AsyncIterator[aiosqlite.Connection]:
    async with (await get_pool()).transaction(immediate=True) as conn:
        yield conn
