"""SQLite implementation of product stock storage."""

from decimal import Decimal

import aiosqlite

from boxstock.config import get_logger
from boxstock.core.entities.product import ProductStock, utcnow
from boxstock.core.exceptions import (
    DuplicateProductError,
    ProductNotFoundError,
    StockConflictError,
)
from boxstock.core.interfaces.product_store import IProductStore
from boxstock.infrastructure.storage.sqlite.base import (
    SQLiteStore,
    decimal_text,
    to_datetime,
    to_decimal,
)

logger = get_logger(__name__)


class SQLiteProductStore(SQLiteStore, IProductStore):
    """SQLite implementation of product stock storage."""

    async def create_product(self, product: ProductStock) -> ProductStock:
        """Create a new product."""
        now = utcnow()
        product.created_at = now
        product.updated_at = now
        async with self._writer() as conn:
            try:
                await conn.execute(
                    """
                    INSERT INTO products (
                        product_id, name, sku, quantity_box, quantity_kg,
                        box_to_kg_ratio, cost_per_box, cost_per_kg,
                        price_per_box, price_per_kg, boxed_low_stock_threshold,
                        mutations_halted, halted_reason, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        product.product_id,
                        product.name,
                        product.sku,
                        product.quantity_box,
                        decimal_text(product.quantity_kg),
                        decimal_text(product.box_to_kg_ratio),
                        decimal_text(product.cost_per_box),
                        decimal_text(product.cost_per_kg),
                        decimal_text(product.price_per_box),
                        decimal_text(product.price_per_kg),
                        product.boxed_low_stock_threshold,
                        int(product.mutations_halted),
                        product.halted_reason,
                        product.created_at.isoformat(),
                        product.updated_at.isoformat(),
                    ),
                )
            except aiosqlite.IntegrityError as e:
                if "sku" in str(e):
                    raise DuplicateProductError("sku", product.sku or "") from e
                raise DuplicateProductError("product_id", product.product_id) from e
            logger.info(
                "product_created",
                product_id=product.product_id,
                name=product.name,
            )
            return product

    async def get_product(self, product_id: str) -> ProductStock | None:
        """Get product by ID."""
        async with self._reader() as conn:
            cursor = await conn.execute(
                "SELECT * FROM products WHERE product_id = ?", (product_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_product(row)

    async def get_product_by_sku(self, sku: str) -> ProductStock | None:
        """Get product by SKU."""
        async with self._reader() as conn:
            cursor = await conn.execute("SELECT * FROM products WHERE sku = ?", (sku,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_product(row)

    async def list_products(self, limit: int = 100, offset: int = 0) -> list[ProductStock]:
        """List products ordered by name."""
        async with self._reader() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM products
                ORDER BY name, product_id
                LIMIT ? OFFSET ?
                """,
                (limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_product(row) for row in rows]

    async def count_products(self) -> int:
        async with self._reader() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM products")
            row = await cursor.fetchone()
            return row[0] if row else 0

    async def list_low_stock(self, limit: int = 100, offset: int = 0) -> list[ProductStock]:
        """List products at or below their boxed low-stock threshold.

        Quantities are stored as TEXT, so the comparison runs on exact
        Decimals in Python rather than in SQL.
        """
        async with self._reader() as conn:
            cursor = await conn.execute("SELECT * FROM products ORDER BY name, product_id")
            rows = await cursor.fetchall()
        low = [p for p in (self._row_to_product(row) for row in rows) if p.is_low_stock]
        return low[offset : offset + limit]

    async def apply_stock_change(
        self, product_id: str, box_change: int, kg_change: Decimal
    ) -> ProductStock:
        """Add signed deltas to boxes and loose kg."""
        async with self._writer() as conn:
            cursor = await conn.execute(
                "SELECT * FROM products WHERE product_id = ?", (product_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                raise ProductNotFoundError(product_id)
            product = self._row_to_product(row)

            new_box = product.quantity_box + box_change
            new_kg = product.quantity_kg + kg_change
            if new_box < 0 or new_kg < 0:
                raise StockConflictError(
                    product_id=product_id,
                    box_change=box_change,
                    kg_change=kg_change,
                    quantity_box=product.quantity_box,
                    quantity_kg=product.quantity_kg,
                )

            product.quantity_box = new_box
            product.quantity_kg = new_kg
            product.updated_at = utcnow()
            await conn.execute(
                """
                UPDATE products SET
                    quantity_box = ?,
                    quantity_kg = ?,
                    updated_at = ?
                WHERE product_id = ?
                """,
                (new_box, decimal_text(new_kg), product.updated_at.isoformat(), product_id),
            )
            logger.debug(
                "product_stock_changed",
                product_id=product_id,
                box_change=box_change,
                kg_change=decimal_text(kg_change),
                quantity_box=new_box,
                quantity_kg=decimal_text(new_kg),
            )
            return product

    async def set_stock(
        self, product_id: str, quantity_box: int, quantity_kg: Decimal
    ) -> ProductStock:
        """Overwrite stock levels."""
        if quantity_box < 0 or quantity_kg < 0:
            raise ValueError("stock levels cannot be negative")
        async with self._writer() as conn:
            cursor = await conn.execute(
                """
                UPDATE products SET
                    quantity_box = ?,
                    quantity_kg = ?,
                    updated_at = ?
                WHERE product_id = ?
                """,
                (quantity_box, decimal_text(quantity_kg), utcnow().isoformat(), product_id),
            )
            if cursor.rowcount == 0:
                raise ProductNotFoundError(product_id)
            logger.warning(
                "product_stock_overwritten",
                product_id=product_id,
                quantity_box=quantity_box,
                quantity_kg=decimal_text(quantity_kg),
            )
            cursor = await conn.execute(
                "SELECT * FROM products WHERE product_id = ?", (product_id,)
            )
            return self._row_to_product(await cursor.fetchone())

    async def set_halted(
        self, product_id: str, halted: bool, reason: str | None = None
    ) -> None:
        """Suspend or resume stock mutations."""
        async with self._writer() as conn:
            cursor = await conn.execute(
                """
                UPDATE products SET
                    mutations_halted = ?,
                    halted_reason = ?,
                    updated_at = ?
                WHERE product_id = ?
                """,
                (int(halted), reason if halted else None, utcnow().isoformat(), product_id),
            )
            if cursor.rowcount == 0:
                raise ProductNotFoundError(product_id)
            logger.info("product_halt_changed", product_id=product_id, halted=halted)

    @staticmethod
    def _row_to_product(row: aiosqlite.Row) -> ProductStock:
        """Convert a database row to a ProductStock entity."""
        return ProductStock(
            product_id=row["product_id"],
            name=row["name"],
            sku=row["sku"],
            quantity_box=row["quantity_box"],
            quantity_kg=to_decimal(row["quantity_kg"], "quantity_kg"),
            box_to_kg_ratio=to_decimal(row["box_to_kg_ratio"], "box_to_kg_ratio"),
            cost_per_box=to_decimal(row["cost_per_box"], "cost_per_box"),
            cost_per_kg=to_decimal(row["cost_per_kg"], "cost_per_kg"),
            price_per_box=to_decimal(row["price_per_box"], "price_per_box"),
            price_per_kg=to_decimal(row["price_per_kg"], "price_per_kg"),
            boxed_low_stock_threshold=row["boxed_low_stock_threshold"],
            mutations_halted=bool(row["mutations_halted"]),
            halted_reason=row["halted_reason"],
            created_at=to_datetime(row["created_at"]),
            updated_at=to_datetime(row["updated_at"]),
        )
