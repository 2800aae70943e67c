"""Tests for PreviewSaleUseCase."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from boxstock.application.dto.requests import SalePreviewRequest
from boxstock.application.use_cases.preview_sale import PreviewSaleUseCase
from boxstock.core.exceptions import ProductNotFoundError


@pytest.fixture
def mock_product_store():
    return AsyncMock()


@pytest.fixture
def use_case(mock_product_store):
    return PreviewSaleUseCase(product_store=mock_product_store)


class TestPreviewSaleUseCase:
    async def test_feasible_preview(self, use_case, mock_product_store, product):
        mock_product_store.get_product.return_value = product

        request = SalePreviewRequest(
            product_id=product.product_id, boxes_requested=1, kg_requested=Decimal("30")
        )
        result = await use_case.execute(request)

        assert result.allocation.feasible is True
        assert result.allocation.boxes_to_unbox == 2
        assert result.allocation.final_boxes == 7
        assert result.allocation.final_kg == Decimal("23")
        # Nothing is written
        mock_product_store.apply_stock_change.assert_not_called()

    async def test_infeasible_preview_response(self, use_case, mock_product_store, product):
        mock_product_store.get_product.return_value = product

        request = SalePreviewRequest(product_id=product.product_id, boxes_requested=11)
        response = use_case.to_response(await use_case.execute(request))

        assert response.allocation.can_fulfill is False
        assert response.allocation.reason == "insufficient_boxes"
        assert response.allocation.suggested_max_boxes == 10
        assert response.product.quantity_box == 10

    async def test_unknown_product(self, use_case, mock_product_store):
        mock_product_store.get_product.return_value = None

        with pytest.raises(ProductNotFoundError):
            await use_case.execute(SalePreviewRequest(product_id="prd_missing", boxes_requested=1))
