"""Tests for the lock-retry helper and per-product locks."""

import asyncio

import aiosqlite
import pytest

from boxstock.core.exceptions import StockConflictError
from boxstock.infrastructure.storage.sqlite.unit_of_work import (
    is_lock_timeout,
    product_lock,
    run_with_retry,
)


class TestRunWithRetry:
    async def test_retries_locked_database_then_succeeds(self):
        calls = 0

        async def flaky() -> str:
            nonlocal calls
            calls += 1
            if calls < 3:
                raise aiosqlite.OperationalError("database is locked")
            return "done"

        assert await run_with_retry(flaky, attempts=3, backoff_base=0) == "done"
        assert calls == 3

    async def test_gives_up_after_attempts(self):
        calls = 0

        async def always_locked() -> None:
            nonlocal calls
            calls += 1
            raise aiosqlite.OperationalError("database is locked")

        with pytest.raises(aiosqlite.OperationalError, match="locked"):
            await run_with_retry(always_locked, attempts=2, backoff_base=0)
        assert calls == 2

    async def test_business_conflicts_are_not_retried(self):
        calls = 0

        async def conflicting() -> None:
            nonlocal calls
            calls += 1
            raise StockConflictError("prd_hake", 0, "-5", 1, "2")

        with pytest.raises(StockConflictError):
            await run_with_retry(conflicting, attempts=3, backoff_base=0)
        assert calls == 1


def test_is_lock_timeout():
    assert is_lock_timeout(aiosqlite.OperationalError("database is locked"))
    assert not is_lock_timeout(aiosqlite.OperationalError("no such table: products"))
    assert not is_lock_timeout(ValueError("database is locked"))


async def test_product_lock_is_shared_per_product():
    assert product_lock("prd_a") is product_lock("prd_a")
    assert product_lock("prd_a") is not product_lock("prd_b")

    order: list[str] = []

    async def worker(name: str) -> None:
        async with product_lock("prd_a"):
            order.append(f"{name}-in")
            await asyncio.sleep(0)
            order.append(f"{name}-out")

    await asyncio.gather(worker("one"), worker("two"))
    assert order == ["one-in", "one-out", "two-in", "two-out"]
