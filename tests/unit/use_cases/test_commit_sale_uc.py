"""Tests for CommitSaleUseCase with an in-memory unit of work."""

from contextlib import asynccontextmanager
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from boxstock.application.dto.requests import SaleRequest
from boxstock.application.use_cases.commit_sale import CommitSaleUseCase
from boxstock.core.exceptions import ProductHaltedError
from boxstock.core.interfaces.unit_of_work import IUnitOfWork, StockSession


class MockUnitOfWork(IUnitOfWork):
    """Runs work against AsyncMock stores without a database."""

    def __init__(self):
        self.session = StockSession(
            products=AsyncMock(),
            sales=AsyncMock(),
            movements=AsyncMock(),
            audits=AsyncMock(),
        )

    @asynccontextmanager
    async def transaction(self, product_id):
        yield self.session

    async def run(self, product_id, work):
        async with self.transaction(product_id) as session:
            return await work(session)


@pytest.fixture
def uow():
    return MockUnitOfWork()


@pytest.fixture
def use_case(uow):
    return CommitSaleUseCase(unit_of_work=uow)


def sale_request(**overrides) -> SaleRequest:
    data = {
        "product_id": "prd_tilapia",
        "boxes_quantity": 2,
        "kg_quantity": Decimal("0"),
        "box_price": Decimal("50000"),
        "payment_method": "cash",
        "payment_status": "paid",
    }
    data.update(overrides)
    return SaleRequest(**data)


class TestCommitSaleUseCase:
    async def test_infeasible_sale_writes_nothing(self, use_case, uow, product):
        uow.session.products.get_product.return_value = product

        result = await use_case.execute(sale_request(boxes_quantity=9, kg_quantity=Decimal("30")), "cashier")

        assert result.committed is False
        assert result.allocation.reason.value == "insufficient_spare_boxes"
        uow.session.sales.create_sale.assert_not_called()
        uow.session.movements.append.assert_not_called()

    async def test_halted_product_refused(self, use_case, uow, product):
        product.mutations_halted = True
        uow.session.products.get_product.return_value = product

        with pytest.raises(ProductHaltedError):
            await use_case.execute(sale_request(), "cashier")
        uow.session.sales.create_sale.assert_not_called()

    async def test_to_response_requires_committed_sale(self, use_case, uow, product):
        uow.session.products.get_product.return_value = product
        result = await use_case.execute(sale_request(boxes_quantity=20), "cashier")

        with pytest.raises(ValueError):
            use_case.to_response(result)
