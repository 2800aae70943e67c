"""Pure domain services."""

from boxstock.core.services.allocator import (
    KG_EPSILON,
    box_equivalent_units,
    boxes_needed,
    evaluate_allocation,
    snap_kg,
    with_credit,
)
from boxstock.core.services.ledger import (
    LedgerBalance,
    ReconciliationReport,
    net_change,
    reconcile,
    replay,
    sale_movements,
)

__all__ = [
    "KG_EPSILON",
    "box_equivalent_units",
    "boxes_needed",
    "evaluate_allocation",
    "snap_kg",
    "with_credit",
    "LedgerBalance",
    "ReconciliationReport",
    "net_change",
    "reconcile",
    "replay",
    "sale_movements",
]
