"""
Record Stock Adjustment Use Case.

Deliveries, damage and manual corrections. Each writes exactly one ledger
movement and the matching stock change in a per-product transaction.
"""

from dataclasses import dataclass, field
from typing import Any

from boxstock.application.dto.requests import (
    DamagedStockRequest,
    NewStockRequest,
    StockCorrectionRequest,
)
from boxstock.application.dto.responses import (
    ProductResponse,
    StockAdjustmentResponse,
    StockMovementResponse,
)
from boxstock.application.use_cases.stock_posting import (
    load_mutable_product,
    post_movements,
    run_stock_mutation,
)
from boxstock.config import get_logger
from boxstock.core.entities.product import ProductStock, new_id
from boxstock.core.entities.stock_movement import MovementType, StockMovement
from boxstock.core.interfaces.unit_of_work import IUnitOfWork, StockSession

logger = get_logger(__name__)


@dataclass
class StockAdjustmentResult:
    """Result of a stock adjustment."""

    product: ProductStock
    movement: StockMovement
    adjustment_id: str
    details: dict[str, Any] = field(default_factory=dict)


class RecordStockAdjustmentUseCase:
    """Record deliveries, damaged stock and stock corrections."""

    def __init__(self, unit_of_work: IUnitOfWork | None = None):
        self._unit_of_work = unit_of_work

    async def _get_unit_of_work(self) -> IUnitOfWork:
        if self._unit_of_work is None:
            from boxstock.infrastructure.storage.sqlite import get_unit_of_work

            self._unit_of_work = await get_unit_of_work()
        return self._unit_of_work

    async def add_new_stock(
        self, request: NewStockRequest, performed_by: str
    ) -> StockAdjustmentResult:
        """Record a delivery of boxes and/or loose kg."""
        addition_id = new_id("add")
        details = {
            "total_cost": str(request.total_cost),
            "delivery_date": request.delivery_date.isoformat() if request.delivery_date else None,
            "notes": request.notes,
        }
        movement = StockMovement(
            product_id=request.product_id,
            movement_type=MovementType.NEW_STOCK,
            box_change=request.boxes_added,
            kg_change=request.kg_added,
            stock_addition_id=addition_id,
            reason=request.notes or "Stock delivery",
            metadata=details,
            performed_by=performed_by,
        )
        return await self._record(movement, addition_id, details)

    async def record_damage(
        self, request: DamagedStockRequest, performed_by: str
    ) -> StockAdjustmentResult:
        """
        Record damaged stock.

        Damage never unboxes: loose kg and boxes are written off separately.

        Raises:
            StockConflictError: If either quantity would go negative
        """
        damaged_id = new_id("dmg")
        details = {"loss_value": str(request.loss_value)}
        movement = StockMovement(
            product_id=request.product_id,
            movement_type=MovementType.DAMAGED,
            box_change=-request.damaged_boxes,
            kg_change=-request.damaged_kg,
            damaged_id=damaged_id,
            reason=request.damaged_reason,
            metadata=details,
            performed_by=performed_by,
        )
        return await self._record(movement, damaged_id, details)

    async def record_correction(
        self, request: StockCorrectionRequest, performed_by: str
    ) -> StockAdjustmentResult:
        """Record a signed correction after a physical count."""
        correction_id = new_id("cor")
        movement = StockMovement(
            product_id=request.product_id,
            movement_type=MovementType.STOCK_CORRECTION,
            box_change=request.box_adjustment,
            kg_change=request.kg_adjustment,
            correction_id=correction_id,
            reason=request.correction_reason,
            performed_by=performed_by,
        )
        return await self._record(movement, correction_id, {})

    async def _record(
        self,
        movement: StockMovement,
        adjustment_id: str,
        details: dict[str, Any],
    ) -> StockAdjustmentResult:
        uow = await self._get_unit_of_work()

        async def work(session: StockSession) -> StockAdjustmentResult:
            await load_mutable_product(session, movement.product_id)
            product = await post_movements(session, movement.product_id, [movement])
            return StockAdjustmentResult(
                product=product,
                movement=movement,
                adjustment_id=adjustment_id,
                details=details,
            )

        result = await run_stock_mutation(uow, movement.product_id, work)
        logger.info(
            "stock_adjusted",
            product_id=movement.product_id,
            type=movement.movement_type.value,
            adjustment_id=adjustment_id,
            box_change=movement.box_change,
            kg_change=str(movement.kg_change),
        )
        return result

    def to_response(self, result: StockAdjustmentResult) -> StockAdjustmentResponse:
        """Convert result to API response."""
        return StockAdjustmentResponse(
            product=ProductResponse.from_entity(result.product),
            movement=StockMovementResponse.from_entity(result.movement),
            adjustment_id=result.adjustment_id,
            details=result.details,
        )
