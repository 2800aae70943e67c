"""Commit Sale Use Case: allocate stock and record the sale atomically."""

from dataclasses import dataclass, field

from boxstock.application.dto.requests import SaleRequest
from boxstock.application.dto.responses import (
    AllocationResponse,
    CommitSaleResponse,
    ProductResponse,
    SaleResponse,
    StockMovementResponse,
)
from boxstock.application.use_cases.stock_posting import (
    load_mutable_product,
    post_movements,
    run_stock_mutation,
)
from boxstock.config import get_logger, get_settings
from boxstock.core.entities.allocation import AllocationResult
from boxstock.core.entities.product import ProductStock
from boxstock.core.entities.sale import Sale
from boxstock.core.entities.stock_movement import StockMovement
from boxstock.core.interfaces.unit_of_work import IUnitOfWork, StockSession
from boxstock.core.services.allocator import evaluate_allocation
from boxstock.core.services.ledger import sale_movements

logger = get_logger(__name__)


@dataclass
class CommitSaleResult:
    """Result of committing a sale.

    ``sale`` is None when the allocation was infeasible; nothing was written.
    """

    allocation: AllocationResult
    product: ProductStock
    sale: Sale | None = None
    movements: list[StockMovement] = field(default_factory=list)

    @property
    def committed(self) -> bool:
        return self.sale is not None


class CommitSaleUseCase:
    """Commit a sale: re-check feasibility under the product lock, then write
    the sale, its ledger movements and the new stock in one transaction."""

    def __init__(self, unit_of_work: IUnitOfWork | None = None):
        self._unit_of_work = unit_of_work

    async def _get_unit_of_work(self) -> IUnitOfWork:
        if self._unit_of_work is None:
            from boxstock.infrastructure.storage.sqlite import get_unit_of_work

            self._unit_of_work = await get_unit_of_work()
        return self._unit_of_work

    async def execute(self, request: SaleRequest, performed_by: str) -> CommitSaleResult:
        """Execute commit sale use case."""
        logger.info(
            "commit_sale_started",
            product_id=request.product_id,
            boxes=request.boxes_quantity,
            kg=str(request.kg_quantity),
            performed_by=performed_by,
        )
        uow = await self._get_unit_of_work()
        kg_epsilon = get_settings().inventory.kg_epsilon

        async def work(session: StockSession) -> CommitSaleResult:
            # 1. Re-read stock inside the lock
            product = await load_mutable_product(session, request.product_id)

            # 2. Allocate against persisted stock
            allocation = evaluate_allocation(
                product, request.boxes_quantity, request.kg_quantity, kg_epsilon=kg_epsilon
            )
            if not allocation.feasible:
                return CommitSaleResult(allocation=allocation, product=product)

            # 3. Sale, then unboxing + sale movements
            sale = Sale(
                product_id=product.product_id,
                boxes_quantity=request.boxes_quantity,
                kg_quantity=request.kg_quantity,
                box_price=request.box_price,
                kg_price=request.kg_price,
                amount_paid=request.amount_paid,
                payment_method=request.payment_method,
                payment_status=request.payment_status,
                client_name=request.client_name,
                email_address=request.email_address,
                phone=request.phone,
                performed_by=performed_by,
            )
            await session.sales.create_sale(sale)

            movements = sale_movements(product, allocation, sale.id, performed_by)
            product = await post_movements(session, product.product_id, movements)

            return CommitSaleResult(
                allocation=allocation,
                product=product,
                sale=sale,
                movements=movements,
            )

        result = await run_stock_mutation(uow, request.product_id, work)

        if result.committed:
            logger.info(
                "sale_committed",
                sale_id=result.sale.id,
                product_id=request.product_id,
                boxes_unboxed=result.allocation.boxes_to_unbox,
                total=str(result.sale.total_amount),
                low_stock=result.allocation.low_stock,
            )
        else:
            logger.info(
                "sale_rejected",
                product_id=request.product_id,
                reason=result.allocation.reason.value if result.allocation.reason else None,
            )
        return result

    def to_response(self, result: CommitSaleResult) -> CommitSaleResponse:
        """Convert a committed result to API response."""
        if result.sale is None:
            raise ValueError("cannot build a sale response for an infeasible allocation")
        return CommitSaleResponse(
            sale=SaleResponse.from_entity(result.sale),
            allocation=AllocationResponse.from_result(result.allocation),
            movements=[StockMovementResponse.from_entity(m) for m in result.movements],
            product=ProductResponse.from_entity(result.product),
        )
