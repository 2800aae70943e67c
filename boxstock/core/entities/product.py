"""Product stock domain entity."""

import uuid
from datetime import UTC, datetime
from decimal import ROUND_FLOOR, Decimal

from pydantic import BaseModel, Field


def new_id(prefix: str) -> str:
    """Generate a prefixed opaque identifier, e.g. ``prd_3f9a1c2b7d4e``."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def utcnow() -> datetime:
    return datetime.now(UTC)


class ProductStock(BaseModel):
    """Current box count and loose weight held for one product.

    Boxes and loose kilograms are independent quantities: a box only becomes
    loose weight when it is explicitly unboxed. Both are only ever changed
    together with a stock movement in the ledger.
    """

    product_id: str = Field(default_factory=lambda: new_id("prd"))
    name: str = Field(..., min_length=1, max_length=200)
    sku: str | None = None

    quantity_box: int = Field(default=0, ge=0)
    quantity_kg: Decimal = Field(default=Decimal("0"), ge=0)
    box_to_kg_ratio: Decimal = Field(..., gt=0)

    cost_per_box: Decimal = Field(default=Decimal("0"), ge=0)
    cost_per_kg: Decimal = Field(default=Decimal("0"), ge=0)
    price_per_box: Decimal = Field(default=Decimal("0"), ge=0)
    price_per_kg: Decimal = Field(default=Decimal("0"), ge=0)

    boxed_low_stock_threshold: int = Field(default=0, ge=0)

    # Set when the ledger no longer reproduces this stock
    mutations_halted: bool = False
    halted_reason: str | None = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def total_kg_equivalent(self) -> Decimal:
        """Loose weight plus the weight still sealed in boxes."""
        return self.quantity_kg + self.quantity_box * self.box_to_kg_ratio

    @property
    def box_equivalent_units(self) -> int:
        """Whole boxes plus the number of full boxes the loose weight amounts to."""
        loose_boxes = (self.quantity_kg / self.box_to_kg_ratio).to_integral_value(
            rounding=ROUND_FLOOR
        )
        return self.quantity_box + int(loose_boxes)

    @property
    def is_low_stock(self) -> bool:
        return self.box_equivalent_units <= self.boxed_low_stock_threshold
