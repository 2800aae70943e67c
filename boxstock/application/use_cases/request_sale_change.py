"""
Request Sale Change Use Case.

Records amendment and deletion requests against committed sales as pending
audit records. Neither the sale nor the stock is touched until an approver
decides the record.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from boxstock.application.dto.requests import SaleAmendmentRequest, SaleDeletionRequest
from boxstock.application.dto.responses import (
    AllocationWarningResponse,
    AuditRecordResponse,
    AuditRequestResponse,
)
from boxstock.config import get_logger, get_settings
from boxstock.core.entities.allocation import AllocationWarning
from boxstock.core.entities.audit import AuditRecord, AuditType
from boxstock.core.entities.sale import (
    QUANTITY_FIELDS,
    PaymentStatus,
    Sale,
    json_value,
    same_value,
)
from boxstock.core.exceptions import (
    SaleNotFoundError,
    SaleNotMutableError,
    ValidationError,
)
from boxstock.core.interfaces.audit_store import IAuditStore
from boxstock.core.interfaces.product_store import IProductStore
from boxstock.core.interfaces.sale_store import ISaleStore
from boxstock.core.services.allocator import evaluate_allocation, with_credit

logger = get_logger(__name__)


@dataclass
class AuditRequestResult:
    """A recorded change request plus advisory allocation warnings."""

    audit: AuditRecord
    warnings: list[AllocationWarning] = field(default_factory=list)


class RequestSaleChangeUseCase:
    """Create pending audit records for sale amendments and deletions."""

    def __init__(
        self,
        sale_store: ISaleStore | None = None,
        audit_store: IAuditStore | None = None,
        product_store: IProductStore | None = None,
    ):
        self._sale_store = sale_store
        self._audit_store = audit_store
        self._product_store = product_store

    async def _get_sale_store(self) -> ISaleStore:
        if self._sale_store is None:
            from boxstock.infrastructure.storage.sqlite import get_sale_store

            self._sale_store = await get_sale_store()
        return self._sale_store

    async def _get_audit_store(self) -> IAuditStore:
        if self._audit_store is None:
            from boxstock.infrastructure.storage.sqlite import get_audit_store

            self._audit_store = await get_audit_store()
        return self._audit_store

    async def _get_product_store(self) -> IProductStore:
        if self._product_store is None:
            from boxstock.infrastructure.storage.sqlite import get_product_store

            self._product_store = await get_product_store()
        return self._product_store

    async def _load_mutable_sale(self, sale_id: str) -> Sale:
        sale_store = await self._get_sale_store()
        sale = await sale_store.get_sale(sale_id)
        if sale is None:
            raise SaleNotFoundError(sale_id)
        if sale.is_deleted:
            raise SaleNotMutableError(sale_id, sale.status.value)
        return sale

    async def request_amendment(
        self,
        sale_id: str,
        request: SaleAmendmentRequest,
        performed_by: str,
    ) -> AuditRequestResult:
        """
        Record a proposed amendment.

        Only fields that differ from the sale count as changes. The audit is
        a quantity change when a quantity differs, otherwise a payment update.

        Raises:
            SaleNotFoundError: Unknown sale
            SaleNotMutableError: Sale already deleted
            ValidationError: No effective change, or the amended sale would be invalid
        """
        sale = await self._load_mutable_sale(sale_id)

        changes = {
            name: value
            for name, value in request.proposed_fields().items()
            if not same_value(name, getattr(sale, name), value)
        }
        if not changes:
            raise ValidationError("sale", "amendment does not change the sale", sale_id)

        candidate = self._amended_sale(sale, changes)

        boxes_change = candidate.boxes_quantity - sale.boxes_quantity
        kg_change = candidate.kg_quantity - sale.kg_quantity
        quantity_changed = any(name in changes for name in QUANTITY_FIELDS)
        audit_type = AuditType.QUANTITY_CHANGE if quantity_changed else AuditType.PAYMENT_UPDATE

        new_values = {name: json_value(value) for name, value in changes.items()}
        new_values.update(
            total_amount=str(candidate.total_amount),
            amount_paid=str(candidate.amount_paid),
            remaining_amount=str(candidate.remaining_amount),
        )

        audit = AuditRecord(
            sale_id=sale.id,
            audit_type=audit_type,
            boxes_change=boxes_change,
            kg_change=kg_change,
            reason=request.reason,
            old_values=sale.snapshot(),
            new_values=new_values,
            performed_by=performed_by,
        )

        warnings: list[AllocationWarning] = []
        if boxes_change > 0 or kg_change > 0:
            warnings = await self._precheck_increase(sale, boxes_change, kg_change)

        audit_store = await self._get_audit_store()
        audit = await audit_store.create_audit(audit)

        logger.info(
            "sale_amendment_requested",
            audit_id=audit.audit_id,
            sale_id=sale.id,
            audit_type=audit_type.value,
            fields=sorted(changes),
            boxes_change=boxes_change,
            kg_change=str(kg_change),
            warnings=len(warnings),
        )
        return AuditRequestResult(audit=audit, warnings=warnings)

    async def request_deletion(
        self,
        sale_id: str,
        request: SaleDeletionRequest,
        performed_by: str,
    ) -> AuditRequestResult:
        """Record a request to delete a sale and restore its stock."""
        sale = await self._load_mutable_sale(sale_id)

        audit = AuditRecord(
            sale_id=sale.id,
            audit_type=AuditType.DELETION,
            boxes_change=sale.boxes_quantity,
            kg_change=sale.kg_quantity,
            reason=request.reason,
            old_values=sale.snapshot(),
            new_values=None,
            performed_by=performed_by,
        )
        audit_store = await self._get_audit_store()
        audit = await audit_store.create_audit(audit)

        logger.info(
            "sale_deletion_requested",
            audit_id=audit.audit_id,
            sale_id=sale.id,
            boxes=sale.boxes_quantity,
            kg=str(sale.kg_quantity),
        )
        return AuditRequestResult(audit=audit)

    @staticmethod
    def _amended_sale(sale: Sale, changes: dict[str, Any]) -> Sale:
        """Validate the sale as it would look after the amendment."""
        try:
            candidate = Sale.model_validate({**sale.model_dump(), **changes})
        except PydanticValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"]) or "sale"
            raise ValidationError(location, first["msg"]) from e

        if candidate.boxes_quantity == 0 and candidate.kg_quantity == 0:
            raise ValidationError(
                "boxes_quantity", "amended sale must keep a quantity greater than 0"
            )
        if (
            candidate.payment_status in (PaymentStatus.PENDING, PaymentStatus.PARTIAL)
            and not (candidate.client_name or "").strip()
        ):
            raise ValidationError(
                "client_name",
                f"client_name is required for {candidate.payment_status.value} payments",
            )
        return candidate

    async def _precheck_increase(
        self, sale: Sale, boxes_change: int, kg_change: Decimal
    ) -> list[AllocationWarning]:
        """Advisory allocation check of a quantity increase against current stock."""
        product_store = await self._get_product_store()
        product = await product_store.get_product(sale.product_id)
        if product is None:
            return []

        stock = with_credit(product, max(-boxes_change, 0), max(-kg_change, Decimal("0")))
        allocation = evaluate_allocation(
            stock,
            max(boxes_change, 0),
            max(kg_change, Decimal("0")),
            kg_epsilon=get_settings().inventory.kg_epsilon,
        )
        if not allocation.feasible:
            logger.warning(
                "amendment_exceeds_stock",
                sale_id=sale.id,
                product_id=product.product_id,
                reason=allocation.reason.value if allocation.reason else None,
            )
        return list(allocation.warnings)

    def to_response(self, result: AuditRequestResult) -> AuditRequestResponse:
        """Convert result to API response."""
        return AuditRequestResponse(
            audit=AuditRecordResponse.from_entity(result.audit),
            warnings=[
                AllocationWarningResponse(code=w.code.value, message=w.message)
                for w in result.warnings
            ],
        )
