"""Tests for sale entities and payment rules."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from boxstock.core.entities import (
    PaymentMethod,
    PaymentStatus,
    Sale,
    SaleStatus,
    compute_total,
    quantize_money,
    same_value,
    settle_payment,
)


def make_sale(**overrides) -> Sale:
    data = {
        "product_id": "prd_test",
        "boxes_quantity": 2,
        "kg_quantity": Decimal("2.5"),
        "box_price": Decimal("100"),
        "kg_price": Decimal("4.99"),
        "payment_method": PaymentMethod.CASH,
        "payment_status": PaymentStatus.PAID,
        "performed_by": "cashier",
    }
    data.update(overrides)
    return Sale(**data)


class TestMoney:
    def test_total_rounds_half_up(self):
        assert compute_total(0, Decimal("0.5"), Decimal("0"), Decimal("0.01")) == Decimal("0.01")
        assert quantize_money(Decimal("2.345")) == Decimal("2.35")

    def test_paid_settles_total(self):
        assert settle_payment(Decimal("10.00"), PaymentStatus.PAID, Decimal("0")) == (
            Decimal("10.00"),
            Decimal("0.00"),
        )

    def test_pending_owes_total(self):
        paid, remaining = settle_payment(Decimal("10.00"), PaymentStatus.PENDING, Decimal("3"))
        assert paid == Decimal("0.00")
        assert remaining == Decimal("10.00")

    def test_partial_requires_amount(self):
        with pytest.raises(ValueError):
            settle_payment(Decimal("10.00"), PaymentStatus.PARTIAL, Decimal("0"))
        with pytest.raises(ValueError):
            settle_payment(Decimal("10.00"), PaymentStatus.PARTIAL, Decimal("10.01"))

    def test_partial_splits_amount(self):
        assert settle_payment(Decimal("10.00"), PaymentStatus.PARTIAL, Decimal("4")) == (
            Decimal("4.00"),
            Decimal("6.00"),
        )


class TestSale:
    def test_totals_derived(self):
        sale = make_sale()
        assert sale.total_amount == Decimal("212.48")
        assert sale.amount_paid == Decimal("212.48")
        assert sale.remaining_amount == Decimal("0.00")
        assert sale.status == SaleStatus.COMMITTED
        assert sale.id.startswith("sale_")

    def test_partial_sale(self):
        sale = make_sale(
            payment_status=PaymentStatus.PARTIAL,
            amount_paid=Decimal("12.48"),
            client_name="Amina",
        )
        assert sale.remaining_amount == Decimal("200.00")

    def test_invalid_partial_sale(self):
        with pytest.raises(ValidationError):
            make_sale(payment_status=PaymentStatus.PARTIAL, amount_paid=Decimal("0"))

    def test_snapshot_is_json_safe(self):
        snapshot = make_sale().snapshot()
        assert snapshot["kg_quantity"] == "2.5"
        assert snapshot["payment_method"] == "cash"
        assert snapshot["boxes_quantity"] == 2

    def test_same_value_compares_decimals_numerically(self):
        assert same_value("kg_quantity", "2.50", Decimal("2.5"))
        assert not same_value("kg_quantity", "2.5", Decimal("2.6"))
        assert same_value("payment_status", "paid", PaymentStatus.PAID)
