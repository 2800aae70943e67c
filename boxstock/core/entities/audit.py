"""Sale audit (change approval) entities."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from boxstock.core.entities.product import new_id, utcnow


class AuditType(str, Enum):
    """Kind of change requested against a committed sale."""

    QUANTITY_CHANGE = "quantity_change"
    PAYMENT_UPDATE = "payment_update"
    DELETION = "deletion"


class ApprovalStatus(str, Enum):
    """Audit decision state. Leaves PENDING at most once."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AuditRecord(BaseModel):
    """A pending (or decided) change request against a sale."""

    audit_id: str = Field(default_factory=lambda: new_id("aud"))
    sale_id: str
    audit_type: AuditType
    boxes_change: int = 0
    kg_change: Decimal = Decimal("0")
    reason: str = Field(..., min_length=1, max_length=500)

    old_values: dict[str, Any]
    new_values: dict[str, Any] | None = None

    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    performed_by: str
    approved_by: str | None = None
    approval_timestamp: datetime | None = None
    approval_reason: str | None = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_pending(self) -> bool:
        return self.approval_status == ApprovalStatus.PENDING
