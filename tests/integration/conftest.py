"""Fixtures for flows that run the use cases against a real SQLite database."""

from decimal import Decimal

import pytest

from boxstock.application.dto.requests import CreateProductRequest, SaleRequest
from boxstock.application.use_cases import CommitSaleUseCase, RegisterProductUseCase
from boxstock.core.entities import PaymentMethod, PaymentStatus, ProductStock, Sale


@pytest.fixture
async def tilapia(db) -> ProductStock:
    """10 boxes of 25 kg and 3 kg loose, posted as opening stock."""
    return await RegisterProductUseCase().execute(
        CreateProductRequest(
            product_id="prd_tilapia",
            name="Tilapia",
            sku="TIL-25",
            box_to_kg_ratio=Decimal("25"),
            price_per_box=Decimal("50000"),
            price_per_kg=Decimal("2200"),
            boxed_low_stock_threshold=2,
            initial_boxes=10,
            initial_kg=Decimal("3"),
        ),
        performed_by="storekeeper",
    )


@pytest.fixture
def sell(tilapia):
    """Commit a paid cash sale of tilapia and return the stored sale."""

    async def _sell(boxes: int = 0, kg: str = "0") -> Sale:
        result = await CommitSaleUseCase().execute(
            SaleRequest(
                product_id=tilapia.product_id,
                boxes_quantity=boxes,
                kg_quantity=Decimal(kg),
                box_price=Decimal("50000"),
                kg_price=Decimal("2200"),
                payment_method=PaymentMethod.CASH,
                payment_status=PaymentStatus.PAID,
            ),
            performed_by="cashier",
        )
        assert result.committed, result.allocation.reason
        return result.sale

    return _sell
