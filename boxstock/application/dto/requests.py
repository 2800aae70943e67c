"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.
"""

from datetime import date
from decimal import Decimal
from typing import Annotated

from pydantic import (
    AfterValidator,
    BaseModel,
    EmailStr,
    Field,
    StringConstraints,
    model_validator,
)

from boxstock.core.entities.sale import PaymentMethod, PaymentStatus, compute_total

Reason = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]
EMAIL_MAX_LENGTH = 150


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _check_email_length(value: str | None) -> str | None:
    if value is not None and len(value) > EMAIL_MAX_LENGTH:
        raise ValueError(f"email_address must be at most {EMAIL_MAX_LENGTH} characters")
    return value


Email = Annotated[EmailStr | None, AfterValidator(_check_email_length)]
CONTACT_FIELDS = ("client_name", "email_address", "phone")


def _blank_contact_fields(data: object) -> object:
    if isinstance(data, dict):
        data = dict(data)
        for key in CONTACT_FIELDS:
            if isinstance(data.get(key), str):
                data[key] = _blank_to_none(data[key])
    return data


# --- Products ---


class CreateProductRequest(BaseModel):
    """Register a product; opening stock is recorded as a new_stock movement."""

    product_id: str | None = Field(
        default=None,
        min_length=1,
        max_length=64,
        description="Product ID (generated when omitted)",
    )
    name: str = Field(..., min_length=1, max_length=200, description="Product name")
    sku: str | None = Field(default=None, max_length=64, description="Stock keeping unit")
    box_to_kg_ratio: Decimal = Field(..., gt=0, description="Kilograms in one full box")
    cost_per_box: Decimal = Field(default=Decimal("0"), ge=0)
    cost_per_kg: Decimal = Field(default=Decimal("0"), ge=0)
    price_per_box: Decimal = Field(default=Decimal("0"), ge=0)
    price_per_kg: Decimal = Field(default=Decimal("0"), ge=0)
    boxed_low_stock_threshold: int = Field(default=0, ge=0)
    initial_boxes: int = Field(default=0, ge=0, description="Opening box count")
    initial_kg: Decimal = Field(default=Decimal("0"), ge=0, description="Opening loose kg")


# --- Sales ---


class SalePreviewRequest(BaseModel):
    """Ask whether a sale could be served right now. Nothing is reserved."""

    product_id: str = Field(..., min_length=1)
    boxes_requested: int = Field(default=0, ge=0)
    kg_requested: Decimal = Field(default=Decimal("0"), ge=0)


class SaleRequest(BaseModel):
    """A sale to commit."""

    product_id: str = Field(..., min_length=1)
    boxes_quantity: int = Field(default=0, ge=0, description="Whole boxes sold")
    kg_quantity: Decimal = Field(default=Decimal("0"), ge=0, description="Loose kg sold")
    box_price: Decimal = Field(default=Decimal("0"), ge=0, description="Price per box")
    kg_price: Decimal = Field(default=Decimal("0"), ge=0, description="Price per kg")
    payment_method: PaymentMethod
    payment_status: PaymentStatus = PaymentStatus.PENDING
    amount_paid: Decimal = Field(default=Decimal("0"), ge=0)
    client_name: str | None = Field(default=None, max_length=200)
    email_address: Email = None
    phone: str | None = Field(default=None, max_length=15)

    @model_validator(mode="before")
    @classmethod
    def blank_strings_to_none(cls, data: object) -> object:
        return _blank_contact_fields(data)

    @model_validator(mode="after")
    def check_sale(self) -> "SaleRequest":
        if self.boxes_quantity == 0 and self.kg_quantity == 0:
            raise ValueError("at least one of boxes_quantity or kg_quantity must be greater than 0")
        if self.payment_status in (PaymentStatus.PENDING, PaymentStatus.PARTIAL) and not self.client_name:
            raise ValueError(f"client_name is required for {self.payment_status.value} payments")
        if self.payment_status == PaymentStatus.PARTIAL:
            total = compute_total(
                self.boxes_quantity, self.kg_quantity, self.box_price, self.kg_price
            )
            if self.amount_paid <= 0:
                raise ValueError("partial payments require amount_paid greater than 0")
            if self.amount_paid > total:
                raise ValueError(f"amount_paid {self.amount_paid} exceeds total {total}")
        return self


class SaleAmendmentRequest(BaseModel):
    """Proposed changes to a committed sale. Applied only once approved."""

    boxes_quantity: int | None = Field(default=None, ge=0)
    kg_quantity: Decimal | None = Field(default=None, ge=0)
    payment_method: PaymentMethod | None = None
    payment_status: PaymentStatus | None = None
    amount_paid: Decimal | None = Field(default=None, ge=0)
    client_name: str | None = Field(default=None, max_length=200)
    email_address: Email = None
    phone: str | None = Field(default=None, max_length=15)
    reason: Reason

    @model_validator(mode="before")
    @classmethod
    def blank_strings_to_none(cls, data: object) -> object:
        return _blank_contact_fields(data)

    @model_validator(mode="after")
    def check_has_changes(self) -> "SaleAmendmentRequest":
        if not self.proposed_fields():
            raise ValueError("amendment must propose at least one change")
        return self

    def proposed_fields(self) -> dict:
        """Fields explicitly set by the caller, excluding the reason."""
        return {
            key: getattr(self, key)
            for key in self.model_fields_set
            if key != "reason"
        }


class SaleDeletionRequest(BaseModel):
    """Request removal of a sale; stock is restored once approved."""

    reason: Reason


class AuditDecisionRequest(BaseModel):
    """Approve or reject a pending audit record."""

    approval_reason: Reason


# --- Stock adjustments ---


class NewStockRequest(BaseModel):
    """Record a stock delivery."""

    product_id: str = Field(..., min_length=1)
    boxes_added: int = Field(default=0, ge=0)
    kg_added: Decimal = Field(default=Decimal("0"), ge=0)
    total_cost: Decimal = Field(default=Decimal("0"), ge=0)
    delivery_date: date | None = None
    notes: str | None = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def check_quantity(self) -> "NewStockRequest":
        if self.boxes_added == 0 and self.kg_added == 0:
            raise ValueError("at least one of boxes_added or kg_added must be greater than 0")
        return self


class DamagedStockRequest(BaseModel):
    """Record damaged or spoiled stock."""

    product_id: str = Field(..., min_length=1)
    damaged_boxes: int = Field(default=0, ge=0)
    damaged_kg: Decimal = Field(default=Decimal("0"), ge=0)
    damaged_reason: Reason
    loss_value: Decimal = Field(default=Decimal("0"), ge=0)

    @model_validator(mode="after")
    def check_quantity(self) -> "DamagedStockRequest":
        if self.damaged_boxes == 0 and self.damaged_kg == 0:
            raise ValueError("at least one of damaged_boxes or damaged_kg must be greater than 0")
        return self


class StockCorrectionRequest(BaseModel):
    """Signed manual correction after a physical count."""

    product_id: str = Field(..., min_length=1)
    box_adjustment: int = 0
    kg_adjustment: Decimal = Decimal("0")
    correction_reason: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=3, max_length=500)
    ]

    @model_validator(mode="after")
    def check_adjustment(self) -> "StockCorrectionRequest":
        if self.box_adjustment == 0 and self.kg_adjustment == 0:
            raise ValueError("correction must adjust boxes or kg")
        return self
