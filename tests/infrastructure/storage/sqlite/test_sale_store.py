"""Tests for SQLiteSaleStore."""

from decimal import Decimal

import pytest

from boxstock.core.entities import PaymentMethod, PaymentStatus, Sale, SaleStatus
from boxstock.core.exceptions import SaleNotFoundError


class TestSaleStore:
    async def test_round_trip(self, sale_store, stored_sale):
        fetched = await sale_store.get_sale(stored_sale.id)

        assert fetched.kg_quantity == Decimal("2.5")
        # 1 x 300 + 2.5 x 16
        assert fetched.total_amount == Decimal("340.00")
        assert fetched.amount_paid == Decimal("340.00")
        assert fetched.remaining_amount == Decimal("0.00")
        assert fetched.payment_method == PaymentMethod.MOMO_PAY
        assert fetched.status == SaleStatus.COMMITTED

    async def test_missing_sale(self, sale_store, db):
        assert await sale_store.get_sale("sale_missing") is None

    async def test_update(self, sale_store, stored_sale):
        amended = stored_sale.model_copy(
            update={
                "payment_status": PaymentStatus.PENDING,
                "client_name": "Kato",
                "status": SaleStatus.AMENDED,
            }
        )
        amended = Sale.model_validate(amended.model_dump())
        await sale_store.update_sale(amended)

        fetched = await sale_store.get_sale(stored_sale.id)
        assert fetched.status == SaleStatus.AMENDED
        assert fetched.client_name == "Kato"
        assert fetched.amount_paid == Decimal("0.00")
        assert fetched.remaining_amount == Decimal("340.00")

    async def test_update_missing_sale(self, sale_store, stored_product):
        ghost = Sale(
            product_id=stored_product.product_id,
            boxes_quantity=1,
            payment_method=PaymentMethod.CASH,
            payment_status=PaymentStatus.PAID,
            performed_by="cashier",
        )
        with pytest.raises(SaleNotFoundError):
            await sale_store.update_sale(ghost)

    async def test_deleted_sales_hidden_by_default(self, sale_store, stored_sale):
        await sale_store.create_sale(
            Sale(
                product_id=stored_sale.product_id,
                kg_quantity=Decimal("1"),
                kg_price=Decimal("16"),
                payment_method=PaymentMethod.CASH,
                payment_status=PaymentStatus.PENDING,
                client_name="Kato",
                performed_by="cashier",
            )
        )
        await sale_store.update_sale(
            stored_sale.model_copy(update={"status": SaleStatus.DELETED})
        )

        visible = await sale_store.list_sales()
        assert len(visible) == 1
        assert await sale_store.count_sales(include_deleted=True) == 2
        assert await sale_store.count_sales(payment_status=PaymentStatus.PENDING) == 1
        assert await sale_store.count_sales(payment_method=PaymentMethod.MOMO_PAY) == 0
