"""Pytest fixtures for SQLite storage tests."""

from decimal import Decimal
from pathlib import Path

import pytest

from boxstock.core.entities import PaymentMethod, PaymentStatus, ProductStock, Sale
from boxstock.infrastructure.storage.sqlite import (
    SQLiteAuditStore,
    SQLiteMovementStore,
    SQLiteProductStore,
    SQLiteSaleStore,
)


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "pool.db"


@pytest.fixture
def product_store(db) -> SQLiteProductStore:
    return SQLiteProductStore()


@pytest.fixture
def sale_store(db) -> SQLiteSaleStore:
    return SQLiteSaleStore()


@pytest.fixture
def movement_store(db) -> SQLiteMovementStore:
    return SQLiteMovementStore()


@pytest.fixture
def audit_store(db) -> SQLiteAuditStore:
    return SQLiteAuditStore()


@pytest.fixture
async def stored_product(product_store: SQLiteProductStore) -> ProductStock:
    """A product row with no stock and no ledger history."""
    return await product_store.create_product(
        ProductStock(
            product_id="prd_hake",
            name="Hake",
            sku="HAK-20",
            box_to_kg_ratio=Decimal("20"),
            boxed_low_stock_threshold=1,
        )
    )


@pytest.fixture
async def stored_sale(sale_store: SQLiteSaleStore, stored_product: ProductStock) -> Sale:
    return await sale_store.create_sale(
        Sale(
            product_id=stored_product.product_id,
            boxes_quantity=1,
            kg_quantity=Decimal("2.5"),
            box_price=Decimal("300"),
            kg_price=Decimal("16"),
            payment_method=PaymentMethod.MOMO_PAY,
            payment_status=PaymentStatus.PAID,
            performed_by="cashier",
        )
    )
