"""SQLite implementation of sale storage."""

import aiosqlite

from boxstock.config import get_logger
from boxstock.core.entities.product import utcnow
from boxstock.core.entities.sale import (
    PaymentMethod,
    PaymentStatus,
    Sale,
    SaleStatus,
)
from boxstock.core.exceptions import SaleNotFoundError
from boxstock.core.interfaces.sale_store import ISaleStore
from boxstock.infrastructure.storage.sqlite.base import (
    SQLiteStore,
    decimal_text,
    to_datetime,
    to_decimal,
    where_clause,
)

logger = get_logger(__name__)


class SQLiteSaleStore(SQLiteStore, ISaleStore):
    """SQLite implementation of sale storage."""

    async def create_sale(self, sale: Sale) -> Sale:
        """Insert a committed sale."""
        async with self._writer() as conn:
            await conn.execute(
                """
                INSERT INTO sales (
                    id, product_id, boxes_quantity, kg_quantity, box_price, kg_price,
                    total_amount, amount_paid, remaining_amount,
                    payment_method, payment_status, client_name, email_address, phone,
                    status, performed_by, date_time, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    sale.id,
                    sale.product_id,
                    sale.boxes_quantity,
                    decimal_text(sale.kg_quantity),
                    decimal_text(sale.box_price),
                    decimal_text(sale.kg_price),
                    decimal_text(sale.total_amount),
                    decimal_text(sale.amount_paid),
                    decimal_text(sale.remaining_amount),
                    sale.payment_method.value,
                    sale.payment_status.value,
                    sale.client_name,
                    sale.email_address,
                    sale.phone,
                    sale.status.value,
                    sale.performed_by,
                    sale.date_time.isoformat(),
                    sale.updated_at.isoformat(),
                ),
            )
            logger.info(
                "sale_created",
                sale_id=sale.id,
                product_id=sale.product_id,
                total=decimal_text(sale.total_amount),
            )
            return sale

    async def get_sale(self, sale_id: str) -> Sale | None:
        """Get sale by ID."""
        async with self._reader() as conn:
            cursor = await conn.execute("SELECT * FROM sales WHERE id = ?", (sale_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_sale(row)

    async def update_sale(self, sale: Sale) -> Sale:
        """Persist the mutable fields of a sale."""
        sale.updated_at = utcnow()
        async with self._writer() as conn:
            cursor = await conn.execute(
                """
                UPDATE sales SET
                    boxes_quantity = ?,
                    kg_quantity = ?,
                    total_amount = ?,
                    amount_paid = ?,
                    remaining_amount = ?,
                    payment_method = ?,
                    payment_status = ?,
                    client_name = ?,
                    email_address = ?,
                    phone = ?,
                    status = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    sale.boxes_quantity,
                    decimal_text(sale.kg_quantity),
                    decimal_text(sale.total_amount),
                    decimal_text(sale.amount_paid),
                    decimal_text(sale.remaining_amount),
                    sale.payment_method.value,
                    sale.payment_status.value,
                    sale.client_name,
                    sale.email_address,
                    sale.phone,
                    sale.status.value,
                    sale.updated_at.isoformat(),
                    sale.id,
                ),
            )
            if cursor.rowcount == 0:
                raise SaleNotFoundError(sale.id)
            logger.info("sale_updated", sale_id=sale.id, status=sale.status.value)
            return sale

    async def list_sales(
        self,
        product_id: str | None = None,
        payment_status: PaymentStatus | None = None,
        payment_method: PaymentMethod | None = None,
        include_deleted: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Sale]:
        """List sales, newest first."""
        where, params = self._filters(product_id, payment_status, payment_method, include_deleted)
        async with self._reader() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM sales
                {where}
                ORDER BY date_time DESC, id DESC
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_sale(row) for row in rows]

    async def count_sales(
        self,
        product_id: str | None = None,
        payment_status: PaymentStatus | None = None,
        payment_method: PaymentMethod | None = None,
        include_deleted: bool = False,
    ) -> int:
        where, params = self._filters(product_id, payment_status, payment_method, include_deleted)
        async with self._reader() as conn:
            cursor = await conn.execute(f"SELECT COUNT(*) FROM sales {where}", params)
            row = await cursor.fetchone()
            return row[0] if row else 0

    @staticmethod
    def _filters(
        product_id: str | None,
        payment_status: PaymentStatus | None,
        payment_method: PaymentMethod | None,
        include_deleted: bool,
    ) -> tuple[str, list]:
        where, params = where_clause(
            {
                "product_id": product_id,
                "payment_status": payment_status,
                "payment_method": payment_method,
            }
        )
        if not include_deleted:
            where = f"{where} AND status != ?" if where else "WHERE status != ?"
            params.append(SaleStatus.DELETED.value)
        return where, params

    @staticmethod
    def _row_to_sale(row: aiosqlite.Row) -> Sale:
        """Convert a database row to a Sale entity.

        Stored amounts are recomputed by the entity; they match because they
        were produced by the same rules.
        """
        return Sale(
            id=row["id"],
            product_id=row["product_id"],
            boxes_quantity=row["boxes_quantity"],
            kg_quantity=to_decimal(row["kg_quantity"], "kg_quantity"),
            box_price=to_decimal(row["box_price"], "box_price"),
            kg_price=to_decimal(row["kg_price"], "kg_price"),
            total_amount=to_decimal(row["total_amount"], "total_amount"),
            amount_paid=to_decimal(row["amount_paid"], "amount_paid"),
            remaining_amount=to_decimal(row["remaining_amount"], "remaining_amount"),
            payment_method=PaymentMethod(row["payment_method"]),
            payment_status=PaymentStatus(row["payment_status"]),
            client_name=row["client_name"],
            email_address=row["email_address"],
            phone=row["phone"],
            status=SaleStatus(row["status"]),
            performed_by=row["performed_by"],
            date_time=to_datetime(row["date_time"]),
            updated_at=to_datetime(row["updated_at"]),
        )
