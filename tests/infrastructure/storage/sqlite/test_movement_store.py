"""Tests for SQLiteMovementStore and the append-only ledger."""

from decimal import Decimal

import aiosqlite
import pytest

from boxstock.core.entities import MovementStatus, MovementType, StockMovement


def _movement(product_id: str, boxes: int, kg: str, **kwargs) -> StockMovement:
    return StockMovement(
        product_id=product_id,
        movement_type=kwargs.pop("movement_type", MovementType.NEW_STOCK),
        box_change=boxes,
        kg_change=Decimal(kg),
        performed_by="storekeeper",
        **kwargs,
    )


class TestAppend:
    async def test_assigns_increasing_sequence(self, movement_store, stored_product):
        first = await movement_store.append(_movement(stored_product.product_id, 5, "0"))
        second = await movement_store.append(_movement(stored_product.product_id, 0, "3.5"))

        assert first.sequence is not None
        assert second.sequence > first.sequence

    async def test_history_is_oldest_first(self, movement_store, stored_product):
        pid = stored_product.product_id
        await movement_store.append(_movement(pid, 5, "0"))
        await movement_store.append(
            _movement(pid, -1, "20", movement_type=MovementType.UNBOXING)
        )
        await movement_store.append(
            _movement(pid, 0, "-4.5", movement_type=MovementType.DAMAGED, damaged_id="dmg_1")
        )

        history = await movement_store.history(pid)
        assert [m.movement_type for m in history] == [
            MovementType.NEW_STOCK,
            MovementType.UNBOXING,
            MovementType.DAMAGED,
        ]
        assert history[2].kg_change == Decimal("-4.5")
        assert history[2].damaged_id == "dmg_1"

    async def test_metadata_round_trip(self, movement_store, stored_product):
        await movement_store.append(
            _movement(
                stored_product.product_id,
                2,
                "0",
                metadata={"total_cost": "1200.00", "delivery_date": "2026-10-01"},
            )
        )
        [stored] = await movement_store.history(stored_product.product_id)
        assert stored.metadata == {"total_cost": "1200.00", "delivery_date": "2026-10-01"}

    async def test_unknown_product_is_rejected(self, movement_store, db):
        with pytest.raises(aiosqlite.IntegrityError):
            await movement_store.append(_movement("prd_missing", 1, "0"))


class TestAppendOnly:
    async def _first_sequence(self, movement_store, product_id: str) -> int:
        return (await movement_store.append(_movement(product_id, 1, "0"))).sequence

    async def test_update_is_blocked(self, movement_store, stored_product, db):
        sequence = await self._first_sequence(movement_store, stored_product.product_id)

        async with aiosqlite.connect(db) as conn:
            with pytest.raises(aiosqlite.IntegrityError, match="append-only"):
                await conn.execute(
                    "UPDATE stock_movements SET box_change = 99 WHERE sequence = ?", (sequence,)
                )

    async def test_delete_is_blocked(self, movement_store, stored_product, db):
        sequence = await self._first_sequence(movement_store, stored_product.product_id)

        async with aiosqlite.connect(db) as conn:
            with pytest.raises(aiosqlite.IntegrityError, match="append-only"):
                await conn.execute("DELETE FROM stock_movements WHERE sequence = ?", (sequence,))

        assert len(await movement_store.history(stored_product.product_id)) == 1


class TestListing:
    async def test_filters_and_counts(self, movement_store, stored_product, stored_sale):
        pid = stored_product.product_id
        await movement_store.append(_movement(pid, 5, "0"))
        await movement_store.append(
            _movement(pid, -1, "0", movement_type=MovementType.SALE, sale_id=stored_sale.id)
        )
        await movement_store.append(
            _movement(
                pid,
                0,
                "-1",
                movement_type=MovementType.SALE,
                sale_id=stored_sale.id,
                status=MovementStatus.CANCELLED,
            )
        )

        sales = await movement_store.list_movements(movement_type=MovementType.SALE)
        assert len(sales) == 2
        # Newest first
        assert sales[0].status == MovementStatus.CANCELLED

        assert await movement_store.count_movements(product_id=pid) == 3
        assert await movement_store.count_movements(sale_id=stored_sale.id) == 2
        assert await movement_store.count_movements(status=MovementStatus.COMPLETED) == 2

        page = await movement_store.list_movements(product_id=pid, limit=1, offset=1)
        assert len(page) == 1
        assert page[0].box_change == -1
