"""Stock movement ledger endpoints."""

from fastapi import APIRouter, Depends, Query, status

from boxstock.api.dependencies import (
    clamp_page,
    get_actor,
    get_movements,
    get_stock_adjustment_use_case,
)
from boxstock.application.dto.requests import (
    DamagedStockRequest,
    NewStockRequest,
    StockCorrectionRequest,
)
from boxstock.application.dto.responses import (
    ErrorResponse,
    StockAdjustmentResponse,
    StockMovementListResponse,
    StockMovementResponse,
)
from boxstock.application.use_cases import RecordStockAdjustmentUseCase
from boxstock.core.entities.stock_movement import MovementStatus, MovementType
from boxstock.infrastructure.storage.sqlite import SQLiteMovementStore

router = APIRouter(prefix="/api/stock-movements", tags=["stock-movements"])

_ADJUSTMENT_RESPONSES = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    423: {"model": ErrorResponse},
}


@router.get("", response_model=StockMovementListResponse)
async def list_movements(
    product_id: str | None = None,
    movement_type: MovementType | None = None,
    movement_status: MovementStatus | None = Query(default=None, alias="status"),
    sale_id: str | None = None,
    limit: int | None = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    store: SQLiteMovementStore = Depends(get_movements),
) -> StockMovementListResponse:
    """Stock movement history, newest first."""
    limit = clamp_page(limit)
    filters = {
        "product_id": product_id,
        "movement_type": movement_type,
        "status": movement_status,
        "sale_id": sale_id,
    }
    movements = await store.list_movements(**filters, limit=limit, offset=offset)
    total = await store.count_movements(**filters)
    return StockMovementListResponse(
        movements=[StockMovementResponse.from_entity(m) for m in movements],
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(movements) < total,
    )


@router.post(
    "/new-stock",
    response_model=StockAdjustmentResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ADJUSTMENT_RESPONSES,
)
async def add_new_stock(
    request: NewStockRequest,
    actor: str = Depends(get_actor),
    use_case: RecordStockAdjustmentUseCase = Depends(get_stock_adjustment_use_case),
) -> StockAdjustmentResponse:
    """Record a stock delivery."""
    result = await use_case.add_new_stock(request, actor)
    return use_case.to_response(result)


@router.post(
    "/damaged",
    response_model=StockAdjustmentResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ADJUSTMENT_RESPONSES,
)
async def record_damage(
    request: DamagedStockRequest,
    actor: str = Depends(get_actor),
    use_case: RecordStockAdjustmentUseCase = Depends(get_stock_adjustment_use_case),
) -> StockAdjustmentResponse:
    """Write off damaged boxes and/or loose kg."""
    result = await use_case.record_damage(request, actor)
    return use_case.to_response(result)


@router.post(
    "/corrections",
    response_model=StockAdjustmentResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_ADJUSTMENT_RESPONSES,
)
async def record_correction(
    request: StockCorrectionRequest,
    actor: str = Depends(get_actor),
    use_case: RecordStockAdjustmentUseCase = Depends(get_stock_adjustment_use_case),
) -> StockAdjustmentResponse:
    """Apply a signed correction after a physical count."""
    result = await use_case.record_correction(request, actor)
    return use_case.to_response(result)
