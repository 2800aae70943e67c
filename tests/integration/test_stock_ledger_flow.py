"""Stock adjustments, ledger verification and halting against a real database."""

from decimal import Decimal

import pytest

from boxstock.application.dto.requests import (
    CreateProductRequest,
    DamagedStockRequest,
    NewStockRequest,
    StockCorrectionRequest,
)
from boxstock.application.use_cases import (
    ReconcileLedgerUseCase,
    RecordStockAdjustmentUseCase,
    RegisterProductUseCase,
)
from boxstock.core.entities import MovementType
from boxstock.core.exceptions import (
    DuplicateProductError,
    LedgerInvariantError,
    ProductHaltedError,
    StockConflictError,
)
from boxstock.infrastructure.storage.sqlite import get_movement_store, get_product_store


class TestAdjustments:
    async def test_delivery_damage_and_correction(self, tilapia):
        adjust = RecordStockAdjustmentUseCase()

        delivery = await adjust.add_new_stock(
            NewStockRequest(
                product_id=tilapia.product_id,
                boxes_added=5,
                total_cost=Decimal("200000"),
                notes="Weekly delivery",
            ),
            "storekeeper",
        )
        assert delivery.adjustment_id.startswith("add_")
        assert delivery.movement.metadata["total_cost"] == "200000"

        damage = await adjust.record_damage(
            DamagedStockRequest(
                product_id=tilapia.product_id,
                damaged_kg=Decimal("2.5"),
                damaged_reason="Spoiled",
                loss_value=Decimal("5500"),
            ),
            "storekeeper",
        )
        assert damage.movement.kg_change == Decimal("-2.5")

        correction = await adjust.record_correction(
            StockCorrectionRequest(
                product_id=tilapia.product_id,
                box_adjustment=-1,
                correction_reason="Physical count",
            ),
            "storekeeper",
        )

        assert (correction.product.quantity_box, correction.product.quantity_kg) == (
            14,
            Decimal("0.5"),
        )
        history = await (await get_movement_store()).history(tilapia.product_id)
        assert [m.movement_type for m in history] == [
            MovementType.NEW_STOCK,
            MovementType.NEW_STOCK,
            MovementType.DAMAGED,
            MovementType.STOCK_CORRECTION,
        ]

    async def test_damage_never_unboxes(self, tilapia):
        with pytest.raises(StockConflictError):
            await RecordStockAdjustmentUseCase().record_damage(
                DamagedStockRequest(
                    product_id=tilapia.product_id,
                    damaged_kg=Decimal("10"),
                    damaged_reason="Freezer failure",
                ),
                "storekeeper",
            )

        product = await (await get_product_store()).get_product(tilapia.product_id)
        assert (product.quantity_box, product.quantity_kg) == (10, Decimal("3"))
        assert len(await (await get_movement_store()).history(tilapia.product_id)) == 1

    async def test_duplicate_sku(self, tilapia):
        with pytest.raises(DuplicateProductError):
            await RegisterProductUseCase().execute(
                CreateProductRequest(name="Other", sku="TIL-25", box_to_kg_ratio=Decimal("10")),
                performed_by="storekeeper",
            )


class TestLedgerHalt:
    async def _drift(self, product_id: str) -> None:
        # Stock edited behind the ledger's back
        store = await get_product_store()
        await store.set_stock(product_id, 12, Decimal("3"))

    async def test_mismatch_on_write_halts_product(self, tilapia, sell):
        await self._drift(tilapia.product_id)

        with pytest.raises(LedgerInvariantError):
            await sell(boxes=1)

        product = await (await get_product_store()).get_product(tilapia.product_id)
        assert product.mutations_halted is True
        # The failed sale was rolled back
        assert product.quantity_box == 12
        with pytest.raises(ProductHaltedError):
            await sell(boxes=1)

    async def test_check_reports_and_halts(self, tilapia):
        await self._drift(tilapia.product_id)

        result = await ReconcileLedgerUseCase().check(tilapia.product_id)

        assert result.report.balanced is False
        assert result.report.box_drift == 2
        assert result.mutations_halted is True

    async def test_check_balanced(self, tilapia, sell):
        await sell(boxes=1, kg="30")

        result = await ReconcileLedgerUseCase().check(tilapia.product_id)

        assert result.report.balanced is True
        assert result.report.movement_count == 3
        assert result.mutations_halted is False

    async def test_resync_restores_ledger_stock(self, tilapia, sell):
        await self._drift(tilapia.product_id)
        reconcile = ReconcileLedgerUseCase()
        await reconcile.check(tilapia.product_id)

        result = await reconcile.resync(tilapia.product_id, "manager")

        assert result.resynchronized is True
        assert result.report.balanced is True
        assert result.mutations_halted is False
        sale = await sell(boxes=1)
        assert sale.boxes_quantity == 1

    async def test_check_all(self, tilapia):
        results = await ReconcileLedgerUseCase().check_all()
        assert [r.report.product_id for r in results] == [tilapia.product_id]
