"""
Versioned schema migrations for the stock database.

Migrations are the ``vNNN_<name>.sql`` scripts beside this module, applied
in version order and recorded in ``schema_migrations`` with a checksum. A
recorded migration whose script has since been edited stops the run: the
ledger tables are append-only, so an edited script is never replayed over
live data.
"""

import asyncio
import hashlib
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from boxstock.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent
FILENAME_PATTERN = re.compile(r"^v(\d{3})_(\w+)\.sql$")

REQUIRED_TABLES = ("products", "sales", "sales_audit", "stock_movements", "schema_migrations")
LEDGER_TRIGGERS = ("stock_movements_no_update", "stock_movements_no_delete")


@dataclass(frozen=True)
class Migration:
    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_path(cls, path: Path) -> "Migration":
        match = FILENAME_PATTERN.match(path.name)
        if match is None:
            raise ValueError(f"Invalid migration filename: {path.name} (expected vNNN_name.sql)")
        digest = hashlib.sha256(path.read_bytes()).hexdigest()[:16]
        return cls(version=match[1], name=match[2], path=path, checksum=digest)


@dataclass
class MigrationResult:
    version: str
    name: str
    success: bool
    elapsed_ms: int
    error: str | None = None


@dataclass
class MigrationStatus:
    exists: bool
    current_version: str | None = None
    applied: list[str] = field(default_factory=list)
    pending: list[str] = field(default_factory=list)


@dataclass
class SchemaCheck:
    name: str
    passed: bool
    detail: str = ""


def bundled_migrations(directory: Path = MIGRATIONS_DIR) -> list[Migration]:
    return [Migration.from_path(path) for path in sorted(directory.glob("v*.sql"))]


async def applied_checksums(conn: aiosqlite.Connection) -> dict[str, str]:
    """Recorded version -> checksum; empty before the first migration."""
    cursor = await conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'schema_migrations'"
    )
    if await cursor.fetchone() is None:
        return {}
    cursor = await conn.execute("SELECT version, checksum FROM schema_migrations")
    return {version: checksum for version, checksum in await cursor.fetchall()}


async def _copy_database(source: Path, target: Path) -> None:
    """Online copy through SQLite's backup API (safe with WAL)."""
    async with aiosqlite.connect(source) as src, aiosqlite.connect(target) as dst:
        await src.backup(dst)


async def create_backup(db_path: Path) -> Path:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
    backup_path = db_path.with_name(f"{db_path.stem}.backup_{stamp}{db_path.suffix}")
    await _copy_database(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


async def _apply(conn: aiosqlite.Connection, migration: Migration) -> MigrationResult:
    started = time.perf_counter()
    try:
        await conn.executescript(migration.path.read_text(encoding="utf-8"))
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        await conn.execute(
            "INSERT INTO schema_migrations (version, name, checksum, execution_time_ms) "
            "VALUES (?, ?, ?, ?)",
            (migration.version, migration.name, migration.checksum, elapsed_ms),
        )
        await conn.commit()
    except aiosqlite.Error as e:
        await conn.rollback()
        logger.error("migration_failed", version=migration.version, error=str(e))
        return MigrationResult(
            migration.version,
            migration.name,
            success=False,
            elapsed_ms=int((time.perf_counter() - started) * 1000),
            error=str(e),
        )
    logger.info("migration_applied", version=migration.version, name=migration.name)
    return MigrationResult(migration.version, migration.name, success=True, elapsed_ms=elapsed_ms)


async def apply_pending(db_path: Path | None = None, backup: bool = True) -> list[MigrationResult]:
    """
    Apply every bundled migration not yet recorded, in version order.

    An existing database is backed up first when ``backup`` is set; the copy
    is restored if a migration fails and removed after a clean run.

    Returns:
        Results for the migrations attempted (empty when up to date)
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    backup_path = await create_backup(db_path) if backup and db_path.exists() else None

    results: list[MigrationResult] = []
    async with aiosqlite.connect(db_path) as conn:
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA foreign_keys=ON")
        recorded = await applied_checksums(conn)
        for migration in bundled_migrations():
            if migration.version in recorded:
                if recorded[migration.version] != migration.checksum:
                    logger.error(
                        "migration_checksum_mismatch",
                        version=migration.version,
                        recorded=recorded[migration.version],
                        bundled=migration.checksum,
                    )
                    break
                continue
            result = await _apply(conn, migration)
            results.append(result)
            if not result.success:
                break

    if backup_path is not None:
        if all(r.success for r in results):
            backup_path.unlink()
        else:
            await _copy_database(backup_path, db_path)
            logger.warning("database_restored_from_backup", backup_path=str(backup_path))
    return results


async def migration_status(db_path: Path | None = None) -> MigrationStatus:
    db_path = db_path or get_settings().storage.db_path
    bundled = [m.version for m in bundled_migrations()]
    if not db_path.exists():
        return MigrationStatus(exists=False, pending=bundled)

    async with aiosqlite.connect(db_path) as conn:
        applied = sorted(await applied_checksums(conn))
    return MigrationStatus(
        exists=True,
        current_version=applied[-1] if applied else None,
        applied=applied,
        pending=[v for v in bundled if v not in applied],
    )


async def check_schema(db_path: Path | None = None) -> list[SchemaCheck]:
    """SQLite integrity, foreign keys, required tables and the ledger guards."""
    db_path = db_path or get_settings().storage.db_path
    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("PRAGMA integrity_check")
        (integrity,) = await cursor.fetchone()
        cursor = await conn.execute("PRAGMA foreign_key_check")
        fk_violations = len(await cursor.fetchall())
        cursor = await conn.execute("SELECT type, name FROM sqlite_master")
        objects = {(kind, name) for kind, name in await cursor.fetchall()}

    missing_tables = [t for t in REQUIRED_TABLES if ("table", t) not in objects]
    missing_triggers = [t for t in LEDGER_TRIGGERS if ("trigger", t) not in objects]
    return [
        SchemaCheck("integrity", integrity == "ok", integrity),
        SchemaCheck("foreign_keys", fk_violations == 0, f"{fk_violations} violations"),
        SchemaCheck("required_tables", not missing_tables, ", ".join(missing_tables)),
        SchemaCheck("ledger_append_only", not missing_triggers, ", ".join(missing_triggers)),
    ]


def main() -> None:
    """``boxstock-migrate``: apply pending migrations, or verify the schema."""
    import argparse

    parser = argparse.ArgumentParser(description="Apply BoxStock schema migrations")
    parser.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    parser.add_argument("--verify", action="store_true", help="Check schema instead of migrating")
    parser.add_argument("--no-backup", action="store_true", help="Skip the pre-migration backup")
    args = parser.parse_args()

    if args.verify:
        checks = asyncio.run(check_schema(args.db_path))
        for check in checks:
            print(f"[{'PASS' if check.passed else 'FAIL'}] {check.name} {check.detail}".rstrip())
        raise SystemExit(0 if all(c.passed for c in checks) else 1)

    results = asyncio.run(apply_pending(args.db_path, backup=not args.no_backup))
    for result in results:
        print(f"[{'OK' if result.success else 'FAILED'}] v{result.version} {result.name}")
    raise SystemExit(0 if all(r.success for r in results) else 1)


if __name__ == "__main__":
    main()
