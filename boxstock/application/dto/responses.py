"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from boxstock.core.entities import (
    AllocationResult,
    AuditRecord,
    ProductStock,
    Sale,
    StockMovement,
)


class PaginatedResponse(BaseModel):
    """Base for paginated responses."""

    total: int
    limit: int
    offset: int
    has_more: bool


# --- Products ---


class ProductResponse(BaseModel):
    """Product stock in response."""

    product_id: str
    name: str
    sku: str | None = None
    quantity_box: int
    quantity_kg: Decimal
    box_to_kg_ratio: Decimal
    total_kg_equivalent: Decimal = Field(..., description="Loose kg plus kg sealed in boxes")
    box_equivalent_units: int = Field(..., description="boxes + floor(kg / ratio)")
    boxed_low_stock_threshold: int
    is_low_stock: bool
    cost_per_box: Decimal
    cost_per_kg: Decimal
    price_per_box: Decimal
    price_per_kg: Decimal
    mutations_halted: bool = False
    halted_reason: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, product: ProductStock) -> "ProductResponse":
        return cls(
            **product.model_dump(),
            total_kg_equivalent=product.total_kg_equivalent,
            box_equivalent_units=product.box_equivalent_units,
            is_low_stock=product.is_low_stock,
        )


class ProductListResponse(PaginatedResponse):
    """Paginated product list."""

    products: list[ProductResponse]


# --- Ledger ---


class StockMovementResponse(BaseModel):
    """Stock movement in response."""

    movement_id: str
    sequence: int | None = None
    product_id: str
    movement_type: str
    box_change: int
    kg_change: Decimal
    sale_id: str | None = None
    audit_id: str | None = None
    damaged_id: str | None = None
    stock_addition_id: str | None = None
    correction_id: str | None = None
    reason: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    status: str
    performed_by: str
    created_at: datetime

    @classmethod
    def from_entity(cls, movement: StockMovement) -> "StockMovementResponse":
        return cls.model_validate(movement.model_dump(mode="json"))


class StockMovementListResponse(PaginatedResponse):
    """Paginated stock movement history."""

    movements: list[StockMovementResponse]


class StockAdjustmentResponse(BaseModel):
    """Result of recording a delivery, damage or correction."""

    product: ProductResponse
    movement: StockMovementResponse
    adjustment_id: str = Field(..., description="stock_addition_id, damaged_id or correction_id")
    details: dict[str, Any] = Field(default_factory=dict)


class ReconciliationResponse(BaseModel):
    """Ledger replay compared with stored stock."""

    product_id: str
    balanced: bool
    ledger_box: int
    ledger_kg: Decimal
    stock_box: int
    stock_kg: Decimal
    box_drift: int
    kg_drift: Decimal
    movement_count: int
    mutations_halted: bool
    resynchronized: bool = False


# --- Sales ---


class AllocationWarningResponse(BaseModel):
    code: str
    message: str


class AllocationResponse(BaseModel):
    """Allocation verdict."""

    product_id: str
    can_fulfill: bool
    reason: str | None = None
    boxes_requested: int
    kg_requested: Decimal
    kg_shortage: Decimal
    boxes_to_unbox: int
    spare_boxes: int
    final_boxes: int | None = None
    final_kg: Decimal | None = None
    box_equivalent_units: int | None = None
    low_stock: bool = False
    suggested_max_boxes: int | None = None
    suggested_max_kg: Decimal | None = None
    warnings: list[AllocationWarningResponse] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: AllocationResult) -> "AllocationResponse":
        data = result.model_dump(mode="json")
        data["can_fulfill"] = data.pop("feasible")
        return cls.model_validate(data)


class PreviewSaleResponse(BaseModel):
    """Preview of a sale against current stock. Nothing is reserved."""

    allocation: AllocationResponse
    product: ProductResponse


class SaleResponse(BaseModel):
    """Sale in response."""

    id: str
    product_id: str
    boxes_quantity: int
    kg_quantity: Decimal
    box_price: Decimal
    kg_price: Decimal
    total_amount: Decimal
    amount_paid: Decimal
    remaining_amount: Decimal
    payment_method: str
    payment_status: str
    client_name: str | None = None
    email_address: str | None = None
    phone: str | None = None
    status: str
    performed_by: str
    date_time: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, sale: Sale) -> "SaleResponse":
        return cls.model_validate(sale.model_dump(mode="json"))


class SaleListResponse(PaginatedResponse):
    """Paginated sale list."""

    sales: list[SaleResponse]


class CommitSaleResponse(BaseModel):
    """Committed sale with the stock movements written for it."""

    sale: SaleResponse
    allocation: AllocationResponse
    movements: list[StockMovementResponse]
    product: ProductResponse


# --- Audits ---


class AuditRecordResponse(BaseModel):
    """Audit record in response."""

    audit_id: str
    sale_id: str
    audit_type: str
    boxes_change: int
    kg_change: Decimal
    reason: str
    old_values: dict[str, Any]
    new_values: dict[str, Any] | None = None
    approval_status: str
    performed_by: str
    approved_by: str | None = None
    approval_timestamp: datetime | None = None
    approval_reason: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, audit: AuditRecord) -> "AuditRecordResponse":
        return cls.model_validate(audit.model_dump(mode="json"))


class AuditListResponse(PaginatedResponse):
    """Paginated audit record list."""

    audits: list[AuditRecordResponse]


class AuditRequestResponse(BaseModel):
    """A change request recorded for approval."""

    audit: AuditRecordResponse
    message: str = "Change request submitted for approval"
    warnings: list[AllocationWarningResponse] = Field(default_factory=list)


class AuditDecisionResponse(BaseModel):
    """Outcome of approving or rejecting an audit record."""

    audit: AuditRecordResponse
    changed: bool = Field(..., description="False when the same decision was already recorded")
    sale: SaleResponse | None = None
    movements: list[StockMovementResponse] = Field(default_factory=list)


# --- Health / errors ---


class PoolStatsResponse(BaseModel):
    size: int
    idle: int
    in_use: int


class DatabaseHealthResponse(BaseModel):
    """Stock database reachability, schema version and halted products."""

    available: bool
    latency_ms: float | None = None
    pool: PoolStatsResponse | None = None
    schema_version: str | None = None
    pending_migrations: list[str] = Field(default_factory=list)
    halted_products: int | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: DatabaseHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. SALE_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    details: dict[str, Any] | None = Field(default=None, description="Structured context")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)
