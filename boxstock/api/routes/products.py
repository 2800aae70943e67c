"""Product stock endpoints."""

from fastapi import APIRouter, Depends, Query, status

from boxstock.api.dependencies import (
    clamp_page,
    get_actor,
    get_products,
    get_reconcile_ledger_use_case,
    get_register_product_use_case,
)
from boxstock.application.dto.requests import CreateProductRequest
from boxstock.application.dto.responses import (
    ErrorResponse,
    ProductListResponse,
    ProductResponse,
    ReconciliationResponse,
)
from boxstock.application.use_cases import ReconcileLedgerUseCase, RegisterProductUseCase
from boxstock.core.exceptions import ProductNotFoundError
from boxstock.infrastructure.storage.sqlite import SQLiteProductStore

router = APIRouter(prefix="/api/products", tags=["products"])


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def register_product(
    request: CreateProductRequest,
    actor: str = Depends(get_actor),
    use_case: RegisterProductUseCase = Depends(get_register_product_use_case),
) -> ProductResponse:
    """Register a product, optionally with opening stock."""
    product = await use_case.execute(request, actor)
    return use_case.to_response(product)


@router.get("", response_model=ProductListResponse)
async def list_products(
    limit: int | None = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    store: SQLiteProductStore = Depends(get_products),
) -> ProductListResponse:
    """List products with current stock."""
    limit = clamp_page(limit)
    products = await store.list_products(limit=limit, offset=offset)
    total = await store.count_products()
    return ProductListResponse(
        products=[ProductResponse.from_entity(p) for p in products],
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(products) < total,
    )


@router.get("/low-stock", response_model=list[ProductResponse])
async def list_low_stock(
    limit: int | None = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    store: SQLiteProductStore = Depends(get_products),
) -> list[ProductResponse]:
    """Products at or below their box-equivalent low-stock threshold."""
    products = await store.list_low_stock(limit=clamp_page(limit), offset=offset)
    return [ProductResponse.from_entity(p) for p in products]


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_product(
    product_id: str,
    store: SQLiteProductStore = Depends(get_products),
) -> ProductResponse:
    """Get a product's current stock."""
    product = await store.get_product(product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return ProductResponse.from_entity(product)


@router.get(
    "/{product_id}/reconciliation",
    response_model=ReconciliationResponse,
    responses={404: {"model": ErrorResponse}},
)
async def reconcile_product(
    product_id: str,
    use_case: ReconcileLedgerUseCase = Depends(get_reconcile_ledger_use_case),
) -> ReconciliationResponse:
    """
    Replay the product's ledger against its stock.

    A mismatch halts further stock changes for the product.
    """
    result = await use_case.check(product_id)
    return use_case.to_response(result)


@router.post(
    "/{product_id}/resync",
    response_model=ReconciliationResponse,
    responses={404: {"model": ErrorResponse}},
)
async def resync_product(
    product_id: str,
    actor: str = Depends(get_actor),
    use_case: ReconcileLedgerUseCase = Depends(get_reconcile_ledger_use_case),
) -> ReconciliationResponse:
    """Reset stock to the ledger balance and lift the halt."""
    result = await use_case.resync(product_id, actor)
    return use_case.to_response(result)
