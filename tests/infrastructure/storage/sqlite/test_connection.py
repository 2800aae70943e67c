"""Unit tests for SQLite connection pool."""

from pathlib import Path

import aiosqlite
import pytest

from boxstock.infrastructure.storage.sqlite.connection import ConnectionPool


class TestConnectionPoolInit:
    """Tests for ConnectionPool initialization."""

    def test_defaults(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path)
        assert pool.db_path == temp_db_path
        assert pool.pool_size == 5
        assert pool.busy_timeout == 30000
        assert pool.is_open is False
        assert pool.stats().size == 0

    async def test_open_creates_connections(self, tmp_path: Path):
        """Opening creates the directory and pool_size idle connections."""
        pool = ConnectionPool(tmp_path / "nested" / "pool.db", pool_size=3)
        await pool.open()
        try:
            assert (tmp_path / "nested").exists()
            stats = pool.stats()
            assert (stats.size, stats.idle, stats.in_use) == (3, 3, 0)
            async with pool.acquire():
                assert pool.stats().in_use == 1
        finally:
            await pool.close()
        assert pool.is_open is False

    async def test_connections_use_wal_and_foreign_keys(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)
        try:
            async with pool.acquire() as conn:
                cursor = await conn.execute("PRAGMA journal_mode")
                assert (await cursor.fetchone())[0] == "wal"
                cursor = await conn.execute("PRAGMA foreign_keys")
                assert (await cursor.fetchone())[0] == 1
        finally:
            await pool.close()


class TestTransactions:
    """Commit and rollback behaviour."""

    @pytest.fixture
    async def pool(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=2)
        async with pool.transaction() as conn:
            await conn.execute("CREATE TABLE t (v INTEGER)")
        yield pool
        await pool.close()

    async def _count(self, pool: ConnectionPool) -> int:
        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM t")
            return (await cursor.fetchone())[0]

    async def test_transaction_commits(self, pool):
        async with pool.transaction() as conn:
            await conn.execute("INSERT INTO t VALUES (1)")
        assert await self._count(pool) == 1

    async def test_transaction_rolls_back_on_error(self, pool):
        with pytest.raises(RuntimeError):
            async with pool.transaction() as conn:
                await conn.execute("INSERT INTO t VALUES (1)")
                raise RuntimeError("boom")
        assert await self._count(pool) == 0

    async def test_exclusive_transaction_rolls_back_on_error(self, pool):
        with pytest.raises(RuntimeError):
            async with pool.exclusive_transaction() as conn:
                await conn.execute("INSERT INTO t VALUES (1)")
                raise RuntimeError("boom")
        assert await self._count(pool) == 0

    async def test_exclusive_transaction_holds_write_lock(self, pool, temp_db_path: Path):
        async with pool.exclusive_transaction() as conn:
            await conn.execute("INSERT INTO t VALUES (1)")
            async with aiosqlite.connect(temp_db_path, timeout=0.05) as other:
                with pytest.raises(aiosqlite.OperationalError, match="locked"):
                    await other.execute("BEGIN IMMEDIATE")
        assert await self._count(pool) == 1

    async def test_unfinished_transaction_rolled_back_on_release(self, pool):
        async with pool.acquire() as conn:
            await conn.execute("INSERT INTO t VALUES (1)")
            assert conn.in_transaction

        assert await self._count(pool) == 0
