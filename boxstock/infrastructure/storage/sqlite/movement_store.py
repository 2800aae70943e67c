"""SQLite implementation of the append-only stock movement ledger."""

import json

import aiosqlite

from boxstock.config import get_logger
from boxstock.core.entities.stock_movement import (
    MovementStatus,
    MovementType,
    StockMovement,
)
from boxstock.core.interfaces.movement_store import IMovementStore
from boxstock.infrastructure.storage.sqlite.base import (
    SQLiteStore,
    decimal_text,
    to_datetime,
    to_decimal,
    where_clause,
)

logger = get_logger(__name__)


class SQLiteMovementStore(SQLiteStore, IMovementStore):
    """Stock movements. Rows are never updated or deleted (enforced by triggers)."""

    async def append(self, movement: StockMovement) -> StockMovement:
        """Append a movement and assign its sequence."""
        async with self._writer() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO stock_movements (
                    movement_id, product_id, movement_type, box_change, kg_change,
                    sale_id, audit_id, damaged_id, stock_addition_id, correction_id,
                    reason, metadata, status, performed_by, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    movement.movement_id,
                    movement.product_id,
                    movement.movement_type.value,
                    movement.box_change,
                    decimal_text(movement.kg_change),
                    movement.sale_id,
                    movement.audit_id,
                    movement.damaged_id,
                    movement.stock_addition_id,
                    movement.correction_id,
                    movement.reason,
                    json.dumps(movement.metadata, default=str),
                    movement.status.value,
                    movement.performed_by,
                    movement.created_at.isoformat(),
                ),
            )
            movement.sequence = cursor.lastrowid
            logger.info(
                "stock_movement_recorded",
                movement_id=movement.movement_id,
                sequence=movement.sequence,
                product_id=movement.product_id,
                type=movement.movement_type.value,
                box_change=movement.box_change,
                kg_change=decimal_text(movement.kg_change),
            )
            return movement

    async def list_movements(
        self,
        product_id: str | None = None,
        movement_type: MovementType | None = None,
        status: MovementStatus | None = None,
        sale_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[StockMovement]:
        """List movements, newest first."""
        where, params = where_clause(
            {
                "product_id": product_id,
                "movement_type": movement_type,
                "status": status,
                "sale_id": sale_id,
            }
        )
        async with self._reader() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM stock_movements
                {where}
                ORDER BY sequence DESC
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_movement(row) for row in rows]

    async def count_movements(
        self,
        product_id: str | None = None,
        movement_type: MovementType | None = None,
        status: MovementStatus | None = None,
        sale_id: str | None = None,
    ) -> int:
        where, params = where_clause(
            {
                "product_id": product_id,
                "movement_type": movement_type,
                "status": status,
                "sale_id": sale_id,
            }
        )
        async with self._reader() as conn:
            cursor = await conn.execute(f"SELECT COUNT(*) FROM stock_movements {where}", params)
            row = await cursor.fetchone()
            return row[0] if row else 0

    async def history(self, product_id: str) -> list[StockMovement]:
        """All movements of a product, oldest first."""
        async with self._reader() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM stock_movements
                WHERE product_id = ?
                ORDER BY sequence ASC
                """,
                (product_id,),
            )
            rows = await cursor.fetchall()
            return [self._row_to_movement(row) for row in rows]

    @staticmethod
    def _row_to_movement(row: aiosqlite.Row) -> StockMovement:
        """Convert a database row to a StockMovement entity."""
        return StockMovement(
            movement_id=row["movement_id"],
            sequence=row["sequence"],
            product_id=row["product_id"],
            movement_type=MovementType(row["movement_type"]),
            box_change=row["box_change"],
            kg_change=to_decimal(row["kg_change"], "kg_change"),
            sale_id=row["sale_id"],
            audit_id=row["audit_id"],
            damaged_id=row["damaged_id"],
            stock_addition_id=row["stock_addition_id"],
            correction_id=row["correction_id"],
            reason=row["reason"],
            metadata=json.loads(row["metadata"]) if row["metadata"] else {},
            status=MovementStatus(row["status"]),
            performed_by=row["performed_by"],
            created_at=to_datetime(row["created_at"]),
        )
