"""Stock movement ledger entities."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from boxstock.core.entities.product import new_id, utcnow


class MovementType(str, Enum):
    """Cause of a stock movement."""

    DAMAGED = "damaged"
    NEW_STOCK = "new_stock"
    STOCK_CORRECTION = "stock_correction"
    SALE = "sale"
    UNBOXING = "unboxing"


class MovementStatus(str, Enum):
    """Only completed movements count toward stock."""

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class StockMovement(BaseModel):
    """One signed change to a product's boxes and/or loose kilograms.

    Movements are append-only. ``sequence`` is assigned by the store and
    fixes replay order.
    """

    movement_id: str = Field(default_factory=lambda: new_id("mov"))
    sequence: int | None = None
    product_id: str
    movement_type: MovementType
    box_change: int = 0
    kg_change: Decimal = Decimal("0")

    sale_id: str | None = None
    audit_id: str | None = None
    damaged_id: str | None = None
    stock_addition_id: str | None = None
    correction_id: str | None = None

    reason: str | None = None
    # Delivery cost, loss value and similar context
    metadata: dict[str, Any] = Field(default_factory=dict)
    status: MovementStatus = MovementStatus.COMPLETED
    performed_by: str
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def check_nonzero(self) -> "StockMovement":
        if self.box_change == 0 and self.kg_change == 0:
            raise ValueError("stock movement must change boxes or kg")
        return self

    @property
    def counts_toward_stock(self) -> bool:
        return self.status == MovementStatus.COMPLETED
