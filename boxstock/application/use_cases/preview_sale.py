"""Preview Sale Use Case: feasibility check without reservation."""

from dataclasses import dataclass

from boxstock.application.dto.requests import SalePreviewRequest
from boxstock.application.dto.responses import (
    AllocationResponse,
    PreviewSaleResponse,
    ProductResponse,
)
from boxstock.config import get_logger, get_settings
from boxstock.core.entities.allocation import AllocationResult
from boxstock.core.entities.product import ProductStock
from boxstock.core.exceptions import ProductNotFoundError
from boxstock.core.interfaces.product_store import IProductStore
from boxstock.core.services.allocator import evaluate_allocation

logger = get_logger(__name__)


@dataclass
class PreviewSaleResult:
    """Result of previewing a sale."""

    product: ProductStock
    allocation: AllocationResult


class PreviewSaleUseCase:
    """Evaluate a sale against current stock. Takes no lock and writes nothing."""

    def __init__(self, product_store: IProductStore | None = None):
        self._product_store = product_store

    async def _get_product_store(self) -> IProductStore:
        if self._product_store is None:
            from boxstock.infrastructure.storage.sqlite import get_product_store

            self._product_store = await get_product_store()
        return self._product_store

    async def execute(self, request: SalePreviewRequest) -> PreviewSaleResult:
        """Execute preview sale use case."""
        store = await self._get_product_store()

        product = await store.get_product(request.product_id)
        if product is None:
            raise ProductNotFoundError(request.product_id)

        allocation = evaluate_allocation(
            product,
            request.boxes_requested,
            request.kg_requested,
            kg_epsilon=get_settings().inventory.kg_epsilon,
        )

        logger.info(
            "sale_previewed",
            product_id=product.product_id,
            boxes=request.boxes_requested,
            kg=str(request.kg_requested),
            feasible=allocation.feasible,
            boxes_to_unbox=allocation.boxes_to_unbox,
        )
        return PreviewSaleResult(product=product, allocation=allocation)

    def to_response(self, result: PreviewSaleResult) -> PreviewSaleResponse:
        """Convert result to API response."""
        return PreviewSaleResponse(
            allocation=AllocationResponse.from_result(result.allocation),
            product=ProductResponse.from_entity(result.product),
        )
