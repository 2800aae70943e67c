"""Unit tests for the inventory allocator."""

from decimal import Decimal

import pytest

from boxstock.core.entities import AllocationWarningCode, ProductStock
from boxstock.core.services.allocator import (
    box_equivalent_units,
    boxes_needed,
    evaluate_allocation,
    snap_kg,
    with_credit,
)


def make_stock(boxes: int, kg: str, ratio: str = "20", threshold: int = 0) -> ProductStock:
    return ProductStock(
        product_id="prd_test",
        name="Test product",
        quantity_box=boxes,
        quantity_kg=Decimal(kg),
        box_to_kg_ratio=Decimal(ratio),
        boxed_low_stock_threshold=threshold,
    )


class TestBoxesNeeded:
    @pytest.mark.parametrize(
        ("shortage", "expected"),
        [("0", 0), ("-3", 0), ("5", 1), ("20", 1), ("20.000001", 2), ("41", 3)],
    )
    def test_ceiling_division(self, shortage, expected):
        assert boxes_needed(Decimal(shortage), Decimal("20")) == expected

    def test_fractional_ratio(self):
        assert boxes_needed(Decimal("5"), Decimal("2.5")) == 2
        assert boxes_needed(Decimal("5.1"), Decimal("2.5")) == 3


class TestBoxEquivalentUnits:
    def test_floors_loose_weight(self):
        assert box_equivalent_units(2, Decimal("39.9"), Decimal("20")) == 3
        assert box_equivalent_units(0, Decimal("19.99"), Decimal("20")) == 0


class TestSnapKg:
    def test_tiny_residue_becomes_zero(self):
        assert snap_kg(Decimal("0.0000001")) == Decimal("0")
        assert snap_kg(Decimal("-0.0000001")) == Decimal("0")

    def test_real_value_kept(self):
        assert snap_kg(Decimal("0.5")) == Decimal("0.5")


class TestEvaluateAllocation:
    def test_unboxes_spare_boxes_for_kg_shortage(self):
        """10 boxes, no loose kg: 2 boxes + 25 kg unboxes two boxes."""
        result = evaluate_allocation(make_stock(10, "0"), 2, Decimal("25"))

        assert result.feasible is True
        assert result.reason is None
        assert result.kg_shortage == Decimal("25")
        assert result.boxes_to_unbox == 2
        assert result.spare_boxes == 8
        assert result.final_boxes == 6
        assert result.final_kg == Decimal("15")
        assert result.requires_unboxing is True
        codes = [w.code for w in result.warnings]
        assert AllocationWarningCode.AUTO_UNBOXING in codes

    def test_not_enough_spare_boxes(self):
        result = evaluate_allocation(make_stock(10, "0"), 9, Decimal("25"))

        assert result.feasible is False
        assert result.reason == AllocationWarningCode.INSUFFICIENT_SPARE_BOXES
        assert result.boxes_to_unbox == 2
        assert result.spare_boxes == 1
        assert result.suggested_max_kg == Decimal("20")
        assert result.final_boxes is None

    def test_not_enough_boxes(self):
        result = evaluate_allocation(make_stock(3, "100"), 4, Decimal("0"))

        assert result.feasible is False
        assert result.reason == AllocationWarningCode.INSUFFICIENT_BOXES
        assert result.suggested_max_boxes == 3

    def test_loose_weight_served_first(self):
        result = evaluate_allocation(make_stock(5, "12.5"), 1, Decimal("10"))

        assert result.feasible is True
        assert result.boxes_to_unbox == 0
        assert result.final_boxes == 4
        assert result.final_kg == Decimal("2.5")
        assert result.warnings == []

    def test_exact_loose_weight_leaves_zero(self):
        result = evaluate_allocation(make_stock(1, "7.5"), 0, Decimal("7.5"))

        assert result.feasible is True
        assert result.final_kg == Decimal("0")
        assert result.boxes_to_unbox == 0

    def test_low_stock_warning(self):
        result = evaluate_allocation(make_stock(4, "0", threshold=2), 2, Decimal("0"))

        assert result.feasible is True
        assert result.box_equivalent_units == 2
        assert result.low_stock is True
        assert [w.code for w in result.warnings] == [AllocationWarningCode.LOW_STOCK]

    def test_final_quantities_never_negative(self):
        stock = make_stock(3, "1.75", ratio="2.5")
        for boxes in range(0, 4):
            for kg in ("0", "0.5", "2", "4.25", "9.25"):
                result = evaluate_allocation(stock, boxes, Decimal(kg))
                if result.feasible:
                    assert result.final_boxes >= 0
                    assert result.final_kg >= 0
                    assert result.final_boxes == 3 - boxes - result.boxes_to_unbox
                    assert result.final_kg == (
                        Decimal("1.75") + result.boxes_to_unbox * Decimal("2.5") - Decimal(kg)
                    )

    def test_negative_request_rejected(self):
        with pytest.raises(ValueError):
            evaluate_allocation(make_stock(1, "0"), -1, Decimal("0"))
        with pytest.raises(ValueError):
            evaluate_allocation(make_stock(1, "0"), 0, Decimal("-1"))

    def test_details_are_json_safe(self):
        details = evaluate_allocation(make_stock(10, "0"), 9, Decimal("25")).details()

        assert details["reason"] == "insufficient_spare_boxes"
        assert details["feasible"] is False


class TestWithCredit:
    def test_credit_is_not_saved(self):
        stock = make_stock(2, "1")
        credited = with_credit(stock, 1, Decimal("4"))

        assert credited.quantity_box == 3
        assert credited.quantity_kg == Decimal("5")
        assert stock.quantity_box == 2
