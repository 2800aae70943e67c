"""
Stock movement ledger rules.

Builds the movements that accompany a stock change and replays a product's
history to check it still reproduces the stored stock.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from boxstock.core.entities.allocation import AllocationResult
from boxstock.core.entities.product import ProductStock
from boxstock.core.entities.stock_movement import MovementType, StockMovement


@dataclass(frozen=True)
class LedgerBalance:
    """Stock obtained by replaying completed movements from zero."""

    quantity_box: int
    quantity_kg: Decimal
    movement_count: int


@dataclass(frozen=True)
class ReconciliationReport:
    """Ledger replay compared with the stored stock of one product."""

    product_id: str
    ledger_box: int
    ledger_kg: Decimal
    stock_box: int
    stock_kg: Decimal
    movement_count: int

    @property
    def balanced(self) -> bool:
        return self.ledger_box == self.stock_box and self.ledger_kg == self.stock_kg

    @property
    def box_drift(self) -> int:
        return self.stock_box - self.ledger_box

    @property
    def kg_drift(self) -> Decimal:
        return self.stock_kg - self.ledger_kg


def replay(movements: Iterable[StockMovement]) -> LedgerBalance:
    """Sum completed movements in sequence order."""
    ordered = sorted(movements, key=lambda m: (m.sequence or 0, m.created_at))
    boxes = 0
    kg = Decimal("0")
    count = 0
    for movement in ordered:
        if not movement.counts_toward_stock:
            continue
        boxes += movement.box_change
        kg += movement.kg_change
        count += 1
    return LedgerBalance(quantity_box=boxes, quantity_kg=kg, movement_count=count)


def reconcile(stock: ProductStock, movements: Iterable[StockMovement]) -> ReconciliationReport:
    balance = replay(movements)
    return ReconciliationReport(
        product_id=stock.product_id,
        ledger_box=balance.quantity_box,
        ledger_kg=balance.quantity_kg,
        stock_box=stock.quantity_box,
        stock_kg=stock.quantity_kg,
        movement_count=balance.movement_count,
    )


def snapped_residue(stock: ProductStock, allocation: AllocationResult) -> Decimal:
    """Loose kg left by the exact arithmetic but reported as zero by the allocator."""
    if allocation.final_kg is None:
        return Decimal("0")
    exact = (
        stock.quantity_kg
        + allocation.boxes_to_unbox * stock.box_to_kg_ratio
        - allocation.kg_requested
    )
    return exact - allocation.final_kg


def sale_movements(
    stock: ProductStock,
    allocation: AllocationResult,
    sale_id: str,
    performed_by: str,
    audit_id: str | None = None,
) -> list[StockMovement]:
    """
    Movements for a feasible allocation, in write order.

    An unboxing movement (boxes out, loose kg in) precedes the sale movement
    when the allocation needs it. Both link to the same sale. A loose-kg
    residue the allocator snapped to zero is written off with the sale, so
    posting the movements leaves exactly the allocation's final stock.

    Raises:
        ValueError: If the allocation is not feasible
    """
    if not allocation.feasible:
        raise ValueError(f"cannot build movements for infeasible allocation: {allocation.reason}")

    movements: list[StockMovement] = []
    if allocation.boxes_to_unbox > 0:
        movements.append(
            StockMovement(
                product_id=stock.product_id,
                movement_type=MovementType.UNBOXING,
                box_change=-allocation.boxes_to_unbox,
                kg_change=allocation.boxes_to_unbox * stock.box_to_kg_ratio,
                sale_id=sale_id,
                audit_id=audit_id,
                reason=f"Unboxed {allocation.boxes_to_unbox} box(es) for sale {sale_id}",
                performed_by=performed_by,
            )
        )

    residue = snapped_residue(stock, allocation)
    if allocation.boxes_requested or allocation.kg_requested:
        movements.append(
            StockMovement(
                product_id=stock.product_id,
                movement_type=MovementType.SALE,
                box_change=-allocation.boxes_requested,
                kg_change=-(allocation.kg_requested + residue),
                sale_id=sale_id,
                audit_id=audit_id,
                metadata={"kg_residue_written_off": format(residue, "f")} if residue else {},
                performed_by=performed_by,
            )
        )
    return movements


def net_change(movements: Iterable[StockMovement]) -> tuple[int, Decimal]:
    """Combined (boxes, kg) delta of a batch of movements."""
    boxes = 0
    kg = Decimal("0")
    for movement in movements:
        boxes += movement.box_change
        kg += movement.kg_change
    return boxes, kg
