"""Sale domain entities."""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from boxstock.core.entities.product import new_id, utcnow

MONEY_QUANTUM = Decimal("0.01")

# Fields a change request may propose
QUANTITY_FIELDS = ("boxes_quantity", "kg_quantity")
AMENDABLE_FIELDS = QUANTITY_FIELDS + (
    "payment_method",
    "payment_status",
    "amount_paid",
    "client_name",
    "email_address",
    "phone",
)
DECIMAL_FIELDS = frozenset(
    {"kg_quantity", "box_price", "kg_price", "total_amount", "amount_paid", "remaining_amount"}
)


class PaymentMethod(str, Enum):
    """Accepted payment methods."""

    MOMO_PAY = "momo_pay"
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"


class PaymentStatus(str, Enum):
    """Payment state of a sale."""

    PAID = "paid"
    PENDING = "pending"
    PARTIAL = "partial"


class SaleStatus(str, Enum):
    """Lifecycle of a committed sale."""

    COMMITTED = "committed"
    AMENDED = "amended"
    DELETED = "deleted"


def quantize_money(value: Decimal) -> Decimal:
    """Round a money amount half-up to cents."""
    return Decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def compute_total(
    boxes_quantity: int,
    kg_quantity: Decimal,
    box_price: Decimal,
    kg_price: Decimal,
) -> Decimal:
    """total = boxes x box_price + kg x kg_price."""
    return quantize_money(boxes_quantity * box_price + kg_quantity * kg_price)


def settle_payment(
    total: Decimal,
    payment_status: PaymentStatus,
    amount_paid: Decimal,
) -> tuple[Decimal, Decimal]:
    """
    Resolve (amount_paid, remaining_amount) for a payment status.

    Raises:
        ValueError: partial payment that is zero or exceeds the total
    """
    if payment_status == PaymentStatus.PAID:
        return total, Decimal("0.00")
    if payment_status == PaymentStatus.PENDING:
        return Decimal("0.00"), total

    paid = quantize_money(amount_paid)
    if paid <= 0:
        raise ValueError("partial payment requires amount_paid greater than 0")
    if paid > total:
        raise ValueError(f"amount_paid {paid} exceeds total {total}")
    return paid, total - paid


def json_value(value: Any) -> Any:
    """Decimals as strings, enums as their values; everything else unchanged."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


def same_value(field: str, left: Any, right: Any) -> bool:
    """Compare two snapshot values of a sale field, decimals numerically."""
    if field in DECIMAL_FIELDS and left is not None and right is not None:
        return Decimal(str(left)) == Decimal(str(right))
    return json_value(left) == json_value(right)


class Sale(BaseModel):
    """A committed sale of boxes and/or loose kilograms of one product."""

    id: str = Field(default_factory=lambda: new_id("sale"))
    product_id: str
    boxes_quantity: int = Field(default=0, ge=0)
    kg_quantity: Decimal = Field(default=Decimal("0"), ge=0)
    box_price: Decimal = Field(default=Decimal("0"), ge=0)
    kg_price: Decimal = Field(default=Decimal("0"), ge=0)

    total_amount: Decimal = Decimal("0.00")
    amount_paid: Decimal = Field(default=Decimal("0.00"), ge=0)
    remaining_amount: Decimal = Decimal("0.00")

    payment_method: PaymentMethod
    payment_status: PaymentStatus = PaymentStatus.PENDING

    client_name: str | None = None
    email_address: str | None = None
    phone: str | None = None

    status: SaleStatus = SaleStatus.COMMITTED
    performed_by: str
    date_time: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def compute_totals(self) -> "Sale":
        """Derive total, amount paid and remaining amount from quantities and prices."""
        self.total_amount = compute_total(
            self.boxes_quantity, self.kg_quantity, self.box_price, self.kg_price
        )
        self.amount_paid, self.remaining_amount = settle_payment(
            self.total_amount, self.payment_status, self.amount_paid
        )
        return self

    @property
    def is_deleted(self) -> bool:
        return self.status == SaleStatus.DELETED

    def snapshot(self) -> dict:
        """JSON-safe view of the fields an audit may change."""
        return {
            "boxes_quantity": self.boxes_quantity,
            "kg_quantity": str(self.kg_quantity),
            "box_price": str(self.box_price),
            "kg_price": str(self.kg_price),
            "total_amount": str(self.total_amount),
            "amount_paid": str(self.amount_paid),
            "remaining_amount": str(self.remaining_amount),
            "payment_method": self.payment_method.value,
            "payment_status": self.payment_status.value,
            "client_name": self.client_name,
            "email_address": self.email_address,
            "phone": self.phone,
        }
