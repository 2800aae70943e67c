"""Unit tests for ledger replay and movement building."""

from decimal import Decimal

import pytest

from boxstock.core.entities import (
    MovementStatus,
    MovementType,
    ProductStock,
    StockMovement,
)
from boxstock.core.services.allocator import evaluate_allocation
from boxstock.core.services.ledger import net_change, reconcile, replay, sale_movements


def movement(seq: int, boxes: int, kg: str, **kwargs) -> StockMovement:
    return StockMovement(
        sequence=seq,
        product_id="prd_test",
        movement_type=kwargs.pop("movement_type", MovementType.STOCK_CORRECTION),
        box_change=boxes,
        kg_change=Decimal(kg),
        performed_by="tester",
        **kwargs,
    )


@pytest.fixture
def stock() -> ProductStock:
    return ProductStock(
        product_id="prd_test",
        name="Test",
        quantity_box=10,
        quantity_kg=Decimal("0"),
        box_to_kg_ratio=Decimal("20"),
    )


class TestReplay:
    def test_sums_completed_movements(self):
        balance = replay(
            [
                movement(1, 10, "0", movement_type=MovementType.NEW_STOCK),
                movement(2, -2, "40", movement_type=MovementType.UNBOXING),
                movement(3, -2, "-25", movement_type=MovementType.SALE),
            ]
        )
        assert balance.quantity_box == 6
        assert balance.quantity_kg == Decimal("15")
        assert balance.movement_count == 3

    def test_ignores_pending_and_cancelled(self):
        balance = replay(
            [
                movement(1, 5, "0"),
                movement(2, 3, "0", status=MovementStatus.PENDING),
                movement(3, 7, "0", status=MovementStatus.CANCELLED),
            ]
        )
        assert balance.quantity_box == 5
        assert balance.movement_count == 1

    def test_empty_history(self):
        balance = replay([])
        assert balance.quantity_box == 0
        assert balance.quantity_kg == Decimal("0")


class TestReconcile:
    def test_balanced(self, stock):
        report = reconcile(stock, [movement(1, 10, "0")])
        assert report.balanced is True
        assert report.box_drift == 0

    def test_drift(self, stock):
        report = reconcile(stock, [movement(1, 9, "0.5")])
        assert report.balanced is False
        assert report.box_drift == 1
        assert report.kg_drift == Decimal("-0.5")


class TestSaleMovements:
    def test_unboxing_precedes_sale(self, stock):
        allocation = evaluate_allocation(stock, 2, Decimal("25"))
        movements = sale_movements(stock, allocation, "sale_1", "cashier")

        assert [m.movement_type for m in movements] == [MovementType.UNBOXING, MovementType.SALE]
        unboxing, sale = movements
        assert unboxing.box_change == -2
        assert unboxing.kg_change == Decimal("40")
        assert sale.box_change == -2
        assert sale.kg_change == Decimal("-25")
        assert all(m.sale_id == "sale_1" for m in movements)
        assert net_change(movements) == (-4, Decimal("15"))

    def test_no_unboxing_when_loose_weight_suffices(self, stock):
        allocation = evaluate_allocation(stock, 3, Decimal("0"))
        movements = sale_movements(stock, allocation, "sale_1", "cashier", audit_id="aud_1")

        assert len(movements) == 1
        assert movements[0].audit_id == "aud_1"

    def test_infeasible_allocation_rejected(self, stock):
        allocation = evaluate_allocation(stock, 11, Decimal("0"))
        with pytest.raises(ValueError):
            sale_movements(stock, allocation, "sale_1", "cashier")

    def test_snapped_residue_is_written_off_with_the_sale(self):
        stock = ProductStock(
            product_id="prd_test",
            name="Test",
            quantity_box=10,
            quantity_kg=Decimal("3"),
            box_to_kg_ratio=Decimal("25"),
        )
        allocation = evaluate_allocation(stock, 0, Decimal("27.9999999"))
        assert allocation.final_kg == Decimal("0")

        unboxing, sale = sale_movements(stock, allocation, "sale_1", "cashier")

        assert unboxing.kg_change == Decimal("25")
        assert sale.kg_change == Decimal("-28")
        assert sale.metadata == {"kg_residue_written_off": "0.0000001"}
        boxes, kg = net_change([unboxing, sale])
        assert stock.quantity_box + boxes == allocation.final_boxes
        assert stock.quantity_kg + kg == allocation.final_kg

    def test_exact_sale_carries_no_residue(self, stock):
        allocation = evaluate_allocation(stock, 0, Decimal("12.5"))
        _, sale = sale_movements(stock, allocation, "sale_1", "cashier")
        assert sale.kg_change == Decimal("-12.5")
        assert sale.metadata == {}
