"""Allocation verdict types."""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class AllocationWarningCode(str, Enum):
    """Advisory codes attached to an allocation verdict."""

    INSUFFICIENT_BOXES = "insufficient_boxes"
    INSUFFICIENT_SPARE_BOXES = "insufficient_spare_boxes"
    AUTO_UNBOXING = "auto_unboxing"
    LOW_STOCK = "low_stock"


# Only these two codes block a commit
BLOCKING_CODES = frozenset(
    {
        AllocationWarningCode.INSUFFICIENT_BOXES,
        AllocationWarningCode.INSUFFICIENT_SPARE_BOXES,
    }
)


class AllocationWarning(BaseModel):
    code: AllocationWarningCode
    message: str


class AllocationResult(BaseModel):
    """Outcome of evaluating a (boxes, kg) request against a stock record."""

    product_id: str
    feasible: bool
    reason: AllocationWarningCode | None = None

    boxes_requested: int
    kg_requested: Decimal

    kg_shortage: Decimal = Decimal("0")
    boxes_to_unbox: int = 0
    spare_boxes: int = 0

    final_boxes: int | None = None
    final_kg: Decimal | None = None
    box_equivalent_units: int | None = None
    low_stock: bool = False

    # Largest request that could be served instead
    suggested_max_boxes: int | None = None
    suggested_max_kg: Decimal | None = None

    warnings: list[AllocationWarning] = Field(default_factory=list)

    @property
    def requires_unboxing(self) -> bool:
        return self.boxes_to_unbox > 0

    def details(self) -> dict:
        """JSON-safe verdict, used in conflict responses."""
        return self.model_dump(mode="json")
