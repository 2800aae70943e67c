"""Sale audit endpoints: review and decide change requests."""

from fastapi import APIRouter, Depends, Query

from boxstock.api.dependencies import (
    clamp_page,
    get_actor,
    get_audits,
    get_decide_audit_use_case,
)
from boxstock.application.dto.requests import AuditDecisionRequest
from boxstock.application.dto.responses import (
    AuditDecisionResponse,
    AuditListResponse,
    AuditRecordResponse,
    ErrorResponse,
)
from boxstock.application.use_cases import DecideAuditUseCase
from boxstock.core.entities.audit import ApprovalStatus, AuditType
from boxstock.core.exceptions import AuditNotFoundError
from boxstock.infrastructure.storage.sqlite import SQLiteAuditStore

router = APIRouter(prefix="/api/sales-audit", tags=["sales-audit"])

_DECISION_RESPONSES = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    423: {"model": ErrorResponse},
}


@router.get("", response_model=AuditListResponse)
async def list_audits(
    sale_id: str | None = None,
    audit_type: AuditType | None = None,
    approval_status: ApprovalStatus | None = None,
    limit: int | None = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    store: SQLiteAuditStore = Depends(get_audits),
) -> AuditListResponse:
    """List audit records, newest first."""
    limit = clamp_page(limit)
    filters = {
        "sale_id": sale_id,
        "audit_type": audit_type,
        "approval_status": approval_status,
    }
    audits = await store.list_audits(**filters, limit=limit, offset=offset)
    total = await store.count_audits(**filters)
    return AuditListResponse(
        audits=[AuditRecordResponse.from_entity(a) for a in audits],
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(audits) < total,
    )


@router.get(
    "/{audit_id}",
    response_model=AuditRecordResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_audit(
    audit_id: str,
    store: SQLiteAuditStore = Depends(get_audits),
) -> AuditRecordResponse:
    """Get an audit record by ID."""
    audit = await store.get_audit(audit_id)
    if audit is None:
        raise AuditNotFoundError(audit_id)
    return AuditRecordResponse.from_entity(audit)


@router.post(
    "/{audit_id}/approve",
    response_model=AuditDecisionResponse,
    responses=_DECISION_RESPONSES,
)
async def approve_audit(
    audit_id: str,
    request: AuditDecisionRequest,
    actor: str = Depends(get_actor),
    use_case: DecideAuditUseCase = Depends(get_decide_audit_use_case),
) -> AuditDecisionResponse:
    """Approve a change request and apply it to the sale and stock."""
    result = await use_case.approve(audit_id, request.approval_reason, actor)
    return use_case.to_response(result)


@router.post(
    "/{audit_id}/reject",
    response_model=AuditDecisionResponse,
    responses=_DECISION_RESPONSES,
)
async def reject_audit(
    audit_id: str,
    request: AuditDecisionRequest,
    actor: str = Depends(get_actor),
    use_case: DecideAuditUseCase = Depends(get_decide_audit_use_case),
) -> AuditDecisionResponse:
    """Reject a change request. The sale and stock stay as they are."""
    result = await use_case.reject(audit_id, request.approval_reason, actor)
    return use_case.to_response(result)
