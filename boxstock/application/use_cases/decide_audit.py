"""
Decide Audit Use Case.

Approves or rejects a pending audit record. Approval applies the recorded
change to the sale and posts the matching stock movements in one
per-product transaction; rejection only stamps the decision.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from pydantic import ValidationError as PydanticValidationError

from boxstock.application.dto.responses import (
    AuditDecisionResponse,
    AuditRecordResponse,
    SaleResponse,
    StockMovementResponse,
)
from boxstock.application.use_cases.stock_posting import (
    load_mutable_product,
    post_movements,
    run_stock_mutation,
)
from boxstock.config import get_logger, get_settings
from boxstock.core.entities.audit import ApprovalStatus, AuditRecord, AuditType
from boxstock.core.entities.product import ProductStock, new_id, utcnow
from boxstock.core.entities.sale import (
    AMENDABLE_FIELDS,
    QUANTITY_FIELDS,
    Sale,
    SaleStatus,
    same_value,
)
from boxstock.core.entities.stock_movement import MovementType, StockMovement
from boxstock.core.exceptions import (
    AuditAlreadyDecidedError,
    AuditNotFoundError,
    AuditRevalidationError,
    SaleChangedError,
    SaleNotFoundError,
    SaleNotMutableError,
)
from boxstock.core.interfaces.audit_store import IAuditStore
from boxstock.core.interfaces.sale_store import ISaleStore
from boxstock.core.interfaces.unit_of_work import IUnitOfWork, StockSession
from boxstock.core.services.allocator import evaluate_allocation, with_credit
from boxstock.core.services.ledger import sale_movements

logger = get_logger(__name__)


@dataclass
class DecideAuditResult:
    """Result of deciding an audit record.

    ``changed`` is False when the same decision had already been recorded.
    """

    audit: AuditRecord
    changed: bool
    sale: Sale | None = None
    movements: list[StockMovement] = field(default_factory=list)


class DecideAuditUseCase:
    """Move an audit record from pending to approved or rejected, exactly once."""

    def __init__(
        self,
        audit_store: IAuditStore | None = None,
        sale_store: ISaleStore | None = None,
        unit_of_work: IUnitOfWork | None = None,
    ):
        self._audit_store = audit_store
        self._sale_store = sale_store
        self._unit_of_work = unit_of_work

    async def _get_audit_store(self) -> IAuditStore:
        if self._audit_store is None:
            from boxstock.infrastructure.storage.sqlite import get_audit_store

            self._audit_store = await get_audit_store()
        return self._audit_store

    async def _get_sale_store(self) -> ISaleStore:
        if self._sale_store is None:
            from boxstock.infrastructure.storage.sqlite import get_sale_store

            self._sale_store = await get_sale_store()
        return self._sale_store

    async def _get_unit_of_work(self) -> IUnitOfWork:
        if self._unit_of_work is None:
            from boxstock.infrastructure.storage.sqlite import get_unit_of_work

            self._unit_of_work = await get_unit_of_work()
        return self._unit_of_work

    async def approve(
        self, audit_id: str, approval_reason: str, decided_by: str
    ) -> DecideAuditResult:
        return await self.execute(audit_id, ApprovalStatus.APPROVED, approval_reason, decided_by)

    async def reject(
        self, audit_id: str, approval_reason: str, decided_by: str
    ) -> DecideAuditResult:
        return await self.execute(audit_id, ApprovalStatus.REJECTED, approval_reason, decided_by)

    async def execute(
        self,
        audit_id: str,
        decision: ApprovalStatus,
        approval_reason: str,
        decided_by: str,
    ) -> DecideAuditResult:
        """
        Decide an audit record.

        Raises:
            AuditNotFoundError: Unknown audit
            AuditAlreadyDecidedError: The opposite decision was already recorded
            SaleChangedError: The sale no longer matches the audit snapshot
            AuditRevalidationError: An approved increase no longer fits the stock
            ProductHaltedError: The product awaits ledger reconciliation
        """
        if decision == ApprovalStatus.PENDING:
            raise ValueError("decision must be approved or rejected")

        audit_store = await self._get_audit_store()
        audit = await audit_store.get_audit(audit_id)
        if audit is None:
            raise AuditNotFoundError(audit_id)
        if not audit.is_pending:
            return await self._repeated(audit, decision)

        sale_store = await self._get_sale_store()
        sale = await sale_store.get_sale(audit.sale_id)
        if sale is None:
            raise SaleNotFoundError(audit.sale_id)

        logger.info(
            "audit_decision_started",
            audit_id=audit_id,
            sale_id=sale.id,
            audit_type=audit.audit_type.value,
            decision=decision.value,
            decided_by=decided_by,
        )

        async def work(session: StockSession) -> DecideAuditResult:
            # Re-read under the product lock
            current = await session.audits.get_audit(audit_id)
            if current is None:
                raise AuditNotFoundError(audit_id)
            current_sale = await session.sales.get_sale(current.sale_id)
            if current_sale is None:
                raise SaleNotFoundError(current.sale_id)
            if not current.is_pending:
                return self._repeat_result(current, decision, current_sale)

            movements: list[StockMovement] = []
            if decision == ApprovalStatus.APPROVED:
                current_sale, movements = await self._apply(
                    session, current, current_sale, decided_by
                )

            decided = await session.audits.decide(
                audit_id, decision, decided_by, approval_reason, utcnow()
            )
            if not decided:
                raise AuditAlreadyDecidedError(audit_id, "decided concurrently")

            updated = await session.audits.get_audit(audit_id)
            return DecideAuditResult(
                audit=updated,
                changed=True,
                sale=current_sale,
                movements=movements,
            )

        uow = await self._get_unit_of_work()
        result = await run_stock_mutation(uow, sale.product_id, work)

        logger.info(
            "audit_decided",
            audit_id=audit_id,
            decision=decision.value,
            changed=result.changed,
            movements=len(result.movements),
        )
        return result

    async def _repeated(self, audit: AuditRecord, decision: ApprovalStatus) -> DecideAuditResult:
        sale_store = await self._get_sale_store()
        sale = await sale_store.get_sale(audit.sale_id)
        return self._repeat_result(audit, decision, sale)

    @staticmethod
    def _repeat_result(
        audit: AuditRecord, decision: ApprovalStatus, sale: Sale | None
    ) -> DecideAuditResult:
        """Same decision again is a no-op; the opposite one is a conflict."""
        if audit.approval_status != decision:
            raise AuditAlreadyDecidedError(audit.audit_id, audit.approval_status.value)
        logger.info(
            "audit_decision_repeated",
            audit_id=audit.audit_id,
            approval_status=audit.approval_status.value,
        )
        return DecideAuditResult(audit=audit, changed=False, sale=sale)

    async def _apply(
        self,
        session: StockSession,
        audit: AuditRecord,
        sale: Sale,
        decided_by: str,
    ) -> tuple[Sale, list[StockMovement]]:
        """Apply an approved audit to its sale and stock."""
        if sale.is_deleted:
            raise SaleNotMutableError(sale.id, sale.status.value)
        self._check_unchanged(audit, sale)

        if audit.audit_type == AuditType.PAYMENT_UPDATE:
            updated = self._amended(audit, sale)
            await session.sales.update_sale(updated)
            return updated, []

        product = await load_mutable_product(session, sale.product_id)

        if audit.audit_type == AuditType.DELETION:
            movements = [
                self._credit_movement(
                    audit,
                    sale,
                    sale.boxes_quantity,
                    sale.kg_quantity,
                    decided_by,
                    f"Sale {sale.id} deleted (audit {audit.audit_id})",
                )
            ]
            updated = sale.model_copy(update={"status": SaleStatus.DELETED, "updated_at": utcnow()})
        else:
            updated = self._amended(audit, sale)
            movements = self._quantity_movements(audit, sale, updated, product, decided_by)

        await post_movements(session, sale.product_id, movements)
        await session.sales.update_sale(updated)
        return updated, movements

    @staticmethod
    def _check_unchanged(audit: AuditRecord, sale: Sale) -> None:
        """The sale must still hold the values recorded when the audit was requested."""
        touched = set(audit.new_values or {})
        if audit.audit_type in (AuditType.DELETION, AuditType.QUANTITY_CHANGE):
            touched.update(QUANTITY_FIELDS)

        snapshot = sale.snapshot()
        changed = sorted(
            name
            for name in touched
            if name in snapshot
            and name in audit.old_values
            and not same_value(name, snapshot[name], audit.old_values[name])
        )
        if changed:
            raise SaleChangedError(sale.id, audit.audit_id, changed)

    @staticmethod
    def _amended(audit: AuditRecord, sale: Sale) -> Sale:
        """Sale with the audit's proposed fields applied and amounts recomputed."""
        fields = {
            name: value
            for name, value in (audit.new_values or {}).items()
            if name in AMENDABLE_FIELDS
        }
        try:
            return Sale.model_validate(
                {
                    **sale.model_dump(),
                    **fields,
                    "status": SaleStatus.AMENDED,
                    "updated_at": utcnow(),
                }
            )
        except PydanticValidationError as e:
            raise AuditRevalidationError(
                audit.audit_id,
                "amended sale is no longer valid",
                {"errors": [err["msg"] for err in e.errors()]},
            ) from e

    def _quantity_movements(
        self,
        audit: AuditRecord,
        sale: Sale,
        updated: Sale,
        product: ProductStock,
        decided_by: str,
    ) -> list[StockMovement]:
        """Credit decreases first, then allocate increases against the credited stock."""
        box_delta = updated.boxes_quantity - sale.boxes_quantity
        kg_delta = updated.kg_quantity - sale.kg_quantity

        credit_boxes = max(-box_delta, 0)
        credit_kg = max(-kg_delta, Decimal("0"))
        movements: list[StockMovement] = []
        if credit_boxes or credit_kg:
            movements.append(
                self._credit_movement(
                    audit,
                    sale,
                    credit_boxes,
                    credit_kg,
                    decided_by,
                    f"Sale {sale.id} quantity reduced (audit {audit.audit_id})",
                )
            )

        extra_boxes = max(box_delta, 0)
        extra_kg = max(kg_delta, Decimal("0"))
        if extra_boxes or extra_kg:
            stock = with_credit(product, credit_boxes, credit_kg)
            allocation = evaluate_allocation(
                stock, extra_boxes, extra_kg, kg_epsilon=get_settings().inventory.kg_epsilon
            )
            if not allocation.feasible:
                raise AuditRevalidationError(
                    audit.audit_id,
                    allocation.reason.value if allocation.reason else "infeasible",
                    {"allocation": allocation.details()},
                )
            movements.extend(
                sale_movements(stock, allocation, sale.id, decided_by, audit_id=audit.audit_id)
            )
        return movements

    @staticmethod
    def _credit_movement(
        audit: AuditRecord,
        sale: Sale,
        boxes: int,
        kg: Decimal,
        decided_by: str,
        reason: str,
    ) -> StockMovement:
        return StockMovement(
            product_id=sale.product_id,
            movement_type=MovementType.STOCK_CORRECTION,
            box_change=boxes,
            kg_change=kg,
            sale_id=sale.id,
            audit_id=audit.audit_id,
            correction_id=new_id("cor"),
            reason=reason,
            performed_by=decided_by,
        )

    def to_response(self, result: DecideAuditResult) -> AuditDecisionResponse:
        """Convert result to API response."""
        return AuditDecisionResponse(
            audit=AuditRecordResponse.from_entity(result.audit),
            changed=result.changed,
            sale=SaleResponse.from_entity(result.sale) if result.sale else None,
            movements=[StockMovementResponse.from_entity(m) for m in result.movements],
        )
