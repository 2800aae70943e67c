"""Tests for the schema migrator."""

from pathlib import Path

import aiosqlite
import pytest

from boxstock.infrastructure.storage.sqlite.migrations import migrator
from boxstock.infrastructure.storage.sqlite.migrations.migrator import (
    REQUIRED_TABLES,
    Migration,
    apply_pending,
    bundled_migrations,
    check_schema,
    create_backup,
    migration_status,
)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "fresh.db"


class TestMigration:
    def test_from_path_parses_filename(self, tmp_path: Path):
        script = tmp_path / "v001_initial_schema.sql"
        script.write_text("SELECT 1;")

        migration = Migration.from_path(script)

        assert migration.version == "001"
        assert migration.name == "initial_schema"
        assert len(migration.checksum) == 16

    def test_invalid_filename(self, tmp_path: Path):
        bad = tmp_path / "initial.sql"
        bad.write_text("SELECT 1;")
        with pytest.raises(ValueError, match="Invalid migration filename"):
            Migration.from_path(bad)

    def test_bundled_migrations_in_order(self):
        versions = [m.version for m in bundled_migrations()]
        assert versions[0] == "001"
        assert versions == sorted(versions)


class TestApplyPending:
    async def test_creates_schema(self, db_path: Path):
        results = await apply_pending(db_path, backup=False)

        assert results and all(r.success for r in results)
        async with aiosqlite.connect(db_path) as conn:
            cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            tables = {row[0] for row in await cursor.fetchall()}
        assert set(REQUIRED_TABLES) <= tables

    async def test_is_idempotent(self, db_path: Path, tmp_path: Path):
        await apply_pending(db_path, backup=False)

        assert await apply_pending(db_path) == []
        # The pre-migration backup is removed after a clean run
        assert list(tmp_path.glob("*.backup_*")) == []

    async def test_edited_migration_is_not_replayed(
        self, db_path: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ):
        await apply_pending(db_path, backup=False)

        edited_dir = tmp_path / "edited"
        edited_dir.mkdir()
        original = bundled_migrations()[0]
        (edited_dir / original.path.name).write_text(
            original.path.read_text() + "\n-- edited\n"
        )
        monkeypatch.setattr(
            migrator, "bundled_migrations", lambda: bundled_migrations(edited_dir)
        )

        assert await apply_pending(db_path, backup=False) == []

    async def test_failed_migration_restores_backup(
        self, db_path: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ):
        await apply_pending(db_path, backup=False)
        broken = tmp_path / "v002_broken.sql"
        broken.write_text("CREATE TABLE extra (id INTEGER);\nTHIS IS NOT SQL;")
        bundled = bundled_migrations()
        monkeypatch.setattr(
            migrator, "bundled_migrations", lambda: [*bundled, Migration.from_path(broken)]
        )

        results = await apply_pending(db_path)

        assert [r.success for r in results] == [False]
        assert results[0].error
        async with aiosqlite.connect(db_path) as conn:
            cursor = await conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name='extra'"
            )
            assert await cursor.fetchone() is None
        assert (await migration_status(db_path)).pending == ["002"]


class TestStatusAndChecks:
    async def test_status(self, db_path: Path):
        before = await migration_status(db_path)
        assert before.exists is False
        assert "001" in before.pending

        await apply_pending(db_path, backup=False)
        after = await migration_status(db_path)
        assert after.current_version == "001"
        assert after.pending == []

    async def test_schema_checks_pass(self, db_path: Path):
        await apply_pending(db_path, backup=False)

        checks = {c.name: c for c in await check_schema(db_path)}
        assert all(c.passed for c in checks.values())
        assert set(checks) == {"integrity", "foreign_keys", "required_tables", "ledger_append_only"}

    async def test_missing_ledger_guard_fails(self, db_path: Path):
        await apply_pending(db_path, backup=False)
        async with aiosqlite.connect(db_path) as conn:
            await conn.execute("DROP TRIGGER stock_movements_no_delete")
            await conn.commit()

        checks = {c.name: c for c in await check_schema(db_path)}
        assert checks["ledger_append_only"].passed is False
        assert checks["ledger_append_only"].detail == "stock_movements_no_delete"

    async def test_create_backup(self, db_path: Path):
        await apply_pending(db_path, backup=False)

        backup = await create_backup(db_path)

        assert backup.exists()
        assert backup.parent == db_path.parent
        async with aiosqlite.connect(backup) as conn:
            cursor = await conn.execute("SELECT version FROM schema_migrations")
            assert [row[0] for row in await cursor.fetchall()] == ["001"]
