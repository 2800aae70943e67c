"""Domain entities."""

from boxstock.core.entities.allocation import (
    BLOCKING_CODES,
    AllocationResult,
    AllocationWarning,
    AllocationWarningCode,
)
from boxstock.core.entities.audit import ApprovalStatus, AuditRecord, AuditType
from boxstock.core.entities.product import ProductStock, new_id, utcnow
from boxstock.core.entities.sale import (
    AMENDABLE_FIELDS,
    DECIMAL_FIELDS,
    MONEY_QUANTUM,
    QUANTITY_FIELDS,
    PaymentMethod,
    PaymentStatus,
    Sale,
    SaleStatus,
    compute_total,
    json_value,
    quantize_money,
    same_value,
    settle_payment,
)
from boxstock.core.entities.stock_movement import (
    MovementStatus,
    MovementType,
    StockMovement,
)

__all__ = [
    # Allocation
    "AllocationResult",
    "AllocationWarning",
    "AllocationWarningCode",
    "BLOCKING_CODES",
    # Audit
    "ApprovalStatus",
    "AuditRecord",
    "AuditType",
    # Product
    "ProductStock",
    "new_id",
    "utcnow",
    # Sale
    "AMENDABLE_FIELDS",
    "DECIMAL_FIELDS",
    "MONEY_QUANTUM",
    "QUANTITY_FIELDS",
    "PaymentMethod",
    "PaymentStatus",
    "Sale",
    "SaleStatus",
    "compute_total",
    "json_value",
    "quantize_money",
    "same_value",
    "settle_payment",
    # Ledger
    "MovementStatus",
    "MovementType",
    "StockMovement",
]
