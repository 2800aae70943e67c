"""
Health check endpoints.

``/api/health/db`` reports what an operator needs before trusting the
ledger: the pool can serve a query, the schema is at the bundled version,
and how many products have mutations halted after a failed reconciliation.
"""

import time

import aiosqlite
from fastapi import APIRouter

from boxstock import __version__
from boxstock.application.dto.responses import (
    DatabaseHealthResponse,
    HealthResponse,
    PoolStatsResponse,
)
from boxstock.config import get_logger
from boxstock.infrastructure.storage.sqlite import get_pool
from boxstock.infrastructure.storage.sqlite.migrations.migrator import (
    applied_checksums,
    bundled_migrations,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])

_start_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=__version__,
        uptime_seconds=time.time() - _start_time,
    )


async def _database_health() -> DatabaseHealthResponse:
    try:
        pool = await get_pool()
        started = time.perf_counter()
        async with pool.acquire() as conn:
            applied = sorted(await applied_checksums(conn))
            cursor = await conn.execute(
                "SELECT COUNT(*) FROM products WHERE mutations_halted = 1"
            )
            (halted,) = await cursor.fetchone()
        latency_ms = (time.perf_counter() - started) * 1000
    except aiosqlite.Error as e:
        logger.warning("database_health_failed", error=str(e))
        return DatabaseHealthResponse(available=False, error=str(e))

    stats = pool.stats()
    return DatabaseHealthResponse(
        available=True,
        latency_ms=round(latency_ms, 2),
        pool=PoolStatsResponse(size=stats.size, idle=stats.idle, in_use=stats.in_use),
        schema_version=applied[-1] if applied else None,
        pending_migrations=[m.version for m in bundled_migrations() if m.version not in applied],
        halted_products=halted,
    )


@router.get("/db", response_model=HealthResponse)
async def db_health() -> HealthResponse:
    """
    Stock database health.

    Degraded when migrations are pending or any product is halted;
    unhealthy when the database cannot be queried.
    """
    database = await _database_health()
    if not database.available:
        status = "unhealthy"
    elif database.pending_migrations or database.halted_products:
        status = "degraded"
    else:
        status = "healthy"

    return HealthResponse(
        status=status,
        version=__version__,
        uptime_seconds=time.time() - _start_time,
        database=database,
    )
