"""Sale endpoints: preview, commit and change requests."""

from fastapi import APIRouter, Depends, Query, status

from boxstock.api.dependencies import (
    clamp_page,
    get_actor,
    get_commit_sale_use_case,
    get_preview_sale_use_case,
    get_request_sale_change_use_case,
    get_sales,
)
from boxstock.application.dto.requests import (
    SaleAmendmentRequest,
    SaleDeletionRequest,
    SalePreviewRequest,
    SaleRequest,
)
from boxstock.application.dto.responses import (
    AuditRequestResponse,
    CommitSaleResponse,
    ErrorResponse,
    PreviewSaleResponse,
    SaleListResponse,
    SaleResponse,
)
from boxstock.application.use_cases import (
    CommitSaleUseCase,
    PreviewSaleUseCase,
    RequestSaleChangeUseCase,
)
from boxstock.core.entities.sale import PaymentMethod, PaymentStatus
from boxstock.core.exceptions import AllocationRejectedError, SaleNotFoundError
from boxstock.infrastructure.storage.sqlite import SQLiteSaleStore

router = APIRouter(prefix="/api/sales", tags=["sales"])


@router.post(
    "/preview",
    response_model=PreviewSaleResponse,
    responses={404: {"model": ErrorResponse}},
)
async def preview_sale(
    request: SalePreviewRequest,
    use_case: PreviewSaleUseCase = Depends(get_preview_sale_use_case),
) -> PreviewSaleResponse:
    """Check whether a sale can be served now. Nothing is reserved."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post(
    "",
    response_model=CommitSaleResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        423: {"model": ErrorResponse},
    },
)
async def commit_sale(
    request: SaleRequest,
    actor: str = Depends(get_actor),
    use_case: CommitSaleUseCase = Depends(get_commit_sale_use_case),
) -> CommitSaleResponse:
    """Commit a sale, unboxing spare boxes when loose weight runs short."""
    result = await use_case.execute(request, actor)
    if not result.committed:
        allocation = result.allocation
        raise AllocationRejectedError(
            request.product_id,
            allocation.reason.value if allocation.reason else "infeasible",
            allocation.details(),
        )
    return use_case.to_response(result)


@router.get("", response_model=SaleListResponse)
async def list_sales(
    product_id: str | None = None,
    payment_status: PaymentStatus | None = None,
    payment_method: PaymentMethod | None = None,
    include_deleted: bool = False,
    limit: int | None = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    store: SQLiteSaleStore = Depends(get_sales),
) -> SaleListResponse:
    """List sales, newest first."""
    limit = clamp_page(limit)
    filters = {
        "product_id": product_id,
        "payment_status": payment_status,
        "payment_method": payment_method,
        "include_deleted": include_deleted,
    }
    sales = await store.list_sales(**filters, limit=limit, offset=offset)
    total = await store.count_sales(**filters)
    return SaleListResponse(
        sales=[SaleResponse.from_entity(s) for s in sales],
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(sales) < total,
    )


@router.get(
    "/{sale_id}",
    response_model=SaleResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_sale(
    sale_id: str,
    store: SQLiteSaleStore = Depends(get_sales),
) -> SaleResponse:
    """Get a sale by ID, including deleted sales."""
    sale = await store.get_sale(sale_id)
    if sale is None:
        raise SaleNotFoundError(sale_id)
    return SaleResponse.from_entity(sale)


@router.put(
    "/{sale_id}",
    response_model=AuditRequestResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def request_amendment(
    sale_id: str,
    request: SaleAmendmentRequest,
    actor: str = Depends(get_actor),
    use_case: RequestSaleChangeUseCase = Depends(get_request_sale_change_use_case),
) -> AuditRequestResponse:
    """Submit an amendment for approval. The sale is unchanged until approved."""
    result = await use_case.request_amendment(sale_id, request, actor)
    return use_case.to_response(result)


@router.delete(
    "/{sale_id}",
    response_model=AuditRequestResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def request_deletion(
    sale_id: str,
    request: SaleDeletionRequest,
    actor: str = Depends(get_actor),
    use_case: RequestSaleChangeUseCase = Depends(get_request_sale_change_use_case),
) -> AuditRequestResponse:
    """Submit a deletion for approval. Stock is restored once approved."""
    result = await use_case.request_deletion(sale_id, request, actor)
    response = use_case.to_response(result)
    response.message = "Deletion request submitted for approval"
    return response
