"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from decimal import Decimal
from pathlib import Path

import pytest

from boxstock.config import reset_settings
from boxstock.core.entities import ProductStock


@pytest.fixture
def product() -> ProductStock:
    """Product with 10 boxes of 25 kg and 3 kg loose."""
    return ProductStock(
        product_id="prd_tilapia",
        name="Tilapia",
        sku="TIL-25",
        quantity_box=10,
        quantity_kg=Decimal("3"),
        box_to_kg_ratio=Decimal("25"),
        price_per_box=Decimal("50000"),
        price_per_kg=Decimal("2200"),
        boxed_low_stock_threshold=2,
    )


@pytest.fixture
async def db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[Path, None]:
    """Fresh migrated database behind the global connection pool."""
    import boxstock.infrastructure.storage.sqlite.connection as conn_module
    from boxstock.infrastructure.storage.sqlite.migrations.migrator import apply_pending

    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("STORAGE_DB_NAME", "test.db")
    reset_settings()
    conn_module._pool = None

    db_path = tmp_path / "test.db"
    await apply_pending(db_path, backup=False)
    try:
        yield db_path
    finally:
        await conn_module.close_pool()
        reset_settings()
