"""
Inventory allocator.

Pure functions that evaluate a (boxes, kg) sale request against a product's
stock. Loose weight is served first; when it runs short, whole spare boxes
are unboxed into loose weight. Nothing here touches storage.
"""

from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal

from boxstock.core.entities.allocation import (
    AllocationResult,
    AllocationWarning,
    AllocationWarningCode,
)
from boxstock.core.entities.product import ProductStock

KG_EPSILON = Decimal("0.000001")


def boxes_needed(kg_shortage: Decimal, ratio: Decimal) -> int:
    """Smallest whole number of boxes whose weight covers the shortage."""
    if kg_shortage <= 0:
        return 0
    return int((kg_shortage / ratio).to_integral_value(rounding=ROUND_CEILING))


def box_equivalent_units(boxes: int, kg: Decimal, ratio: Decimal) -> int:
    """boxes + floor(kg / ratio)."""
    return boxes + int((kg / ratio).to_integral_value(rounding=ROUND_FLOOR))


def snap_kg(value: Decimal, epsilon: Decimal = KG_EPSILON) -> Decimal:
    """Treat residues smaller than epsilon as exactly zero."""
    if abs(value) < epsilon:
        return Decimal("0")
    return value


def evaluate_allocation(
    stock: ProductStock,
    boxes_requested: int,
    kg_requested: Decimal,
    kg_epsilon: Decimal = KG_EPSILON,
) -> AllocationResult:
    """
    Decide whether a request can be served and what the stock would become.

    Args:
        stock: Current product stock
        boxes_requested: Whole boxes to sell
        kg_requested: Loose kilograms to sell
        kg_epsilon: Tolerance for weight residues

    Returns:
        AllocationResult. Infeasible results carry a blocking reason and a
        suggested remedy; feasible ones carry the resulting stock.

    Raises:
        ValueError: If a requested quantity is negative
    """
    kg_requested = Decimal(kg_requested)
    if boxes_requested < 0:
        raise ValueError(f"boxes_requested must be >= 0, got {boxes_requested}")
    if kg_requested < 0:
        raise ValueError(f"kg_requested must be >= 0, got {kg_requested}")

    ratio = stock.box_to_kg_ratio
    base = {
        "product_id": stock.product_id,
        "boxes_requested": boxes_requested,
        "kg_requested": kg_requested,
    }

    if boxes_requested > stock.quantity_box:
        return AllocationResult(
            **base,
            feasible=False,
            reason=AllocationWarningCode.INSUFFICIENT_BOXES,
            suggested_max_boxes=stock.quantity_box,
            warnings=[
                AllocationWarning(
                    code=AllocationWarningCode.INSUFFICIENT_BOXES,
                    message=(
                        f"Only {stock.quantity_box} boxes in stock, "
                        f"{boxes_requested} requested"
                    ),
                )
            ],
        )

    kg_shortage = max(Decimal("0"), kg_requested - stock.quantity_kg)
    to_unbox = boxes_needed(kg_shortage, ratio)
    spare = stock.quantity_box - boxes_requested

    if to_unbox > spare:
        max_kg = stock.quantity_kg + spare * ratio
        return AllocationResult(
            **base,
            feasible=False,
            reason=AllocationWarningCode.INSUFFICIENT_SPARE_BOXES,
            kg_shortage=kg_shortage,
            boxes_to_unbox=to_unbox,
            spare_boxes=spare,
            suggested_max_boxes=boxes_requested,
            suggested_max_kg=max_kg,
            warnings=[
                AllocationWarning(
                    code=AllocationWarningCode.INSUFFICIENT_SPARE_BOXES,
                    message=(
                        f"{kg_shortage} kg short requires unboxing {to_unbox} boxes, "
                        f"only {spare} spare"
                    ),
                )
            ],
        )

    final_boxes = stock.quantity_box - boxes_requested - to_unbox
    final_kg = snap_kg(stock.quantity_kg + to_unbox * ratio - kg_requested, kg_epsilon)
    if final_kg < 0:
        # Unreachable while to_unbox * ratio >= kg_shortage
        raise ArithmeticError(
            f"allocation for {stock.product_id} produced negative kg {final_kg}"
        )

    warnings: list[AllocationWarning] = []
    if to_unbox > 0:
        warnings.append(
            AllocationWarning(
                code=AllocationWarningCode.AUTO_UNBOXING,
                message=(
                    f"{to_unbox} box(es) will be unboxed to cover a "
                    f"{kg_shortage} kg shortage"
                ),
            )
        )

    units = box_equivalent_units(final_boxes, final_kg, ratio)
    low_stock = units <= stock.boxed_low_stock_threshold
    if low_stock:
        warnings.append(
            AllocationWarning(
                code=AllocationWarningCode.LOW_STOCK,
                message=(
                    f"Stock falls to {units} box-equivalent units "
                    f"(threshold {stock.boxed_low_stock_threshold})"
                ),
            )
        )

    return AllocationResult(
        **base,
        feasible=True,
        kg_shortage=kg_shortage,
        boxes_to_unbox=to_unbox,
        spare_boxes=spare,
        final_boxes=final_boxes,
        final_kg=final_kg,
        box_equivalent_units=units,
        low_stock=low_stock,
        warnings=warnings,
    )


def with_credit(stock: ProductStock, boxes: int, kg: Decimal) -> ProductStock:
    """Stock as it would be after crediting boxes and kg back, unsaved."""
    return stock.model_copy(
        update={
            "quantity_box": stock.quantity_box + boxes,
            "quantity_kg": stock.quantity_kg + kg,
        }
    )
