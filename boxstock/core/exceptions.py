"""
Domain exceptions for the stock engine.

Use cases return allocation infeasibility as an AllocationResult; only the
API layer turns it into AllocationRejectedError.
"""

from typing import Any


class BoxStockError(Exception):
    """Base exception for all stock engine errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Validation Exceptions
class ValidationError(BoxStockError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for {field}: {message}",
            code="VALIDATION_ERROR",
            details={"field": field, "message": message, "value": value},
        )


class ConfigurationError(BoxStockError):
    """Configuration error."""

    def __init__(self, setting: str, reason: str):
        super().__init__(
            f"Configuration error for {setting}: {reason}",
            code="CONFIGURATION_ERROR",
            details={"setting": setting, "reason": reason},
        )


# Storage Exceptions
class StorageError(BoxStockError):
    """Base exception for storage operations."""

    pass


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


# Not Found Exceptions
class NotFoundError(BoxStockError):
    """Base exception for missing entities."""

    pass


class ProductNotFoundError(NotFoundError):
    """Product not found."""

    def __init__(self, product_id: str):
        super().__init__(
            f"Product not found: {product_id}",
            code="PRODUCT_NOT_FOUND",
            details={"product_id": product_id},
        )


class SaleNotFoundError(NotFoundError):
    """Sale not found."""

    def __init__(self, sale_id: str):
        super().__init__(
            f"Sale not found: {sale_id}",
            code="SALE_NOT_FOUND",
            details={"sale_id": sale_id},
        )


class AuditNotFoundError(NotFoundError):
    """Audit record not found."""

    def __init__(self, audit_id: str):
        super().__init__(
            f"Audit record not found: {audit_id}",
            code="AUDIT_NOT_FOUND",
            details={"audit_id": audit_id},
        )


class DuplicateProductError(BoxStockError):
    """A product with the same id or SKU already exists."""

    def __init__(self, field: str, value: str):
        super().__init__(
            f"Product already exists with {field}: {value}",
            code="DUPLICATE_PRODUCT",
            details={"field": field, "value": value},
        )


# Conflict Exceptions
class ConflictError(BoxStockError):
    """The requested change no longer applies to the current state."""

    pass


class StockConflictError(ConflictError):
    """A stock mutation would drive a quantity negative."""

    def __init__(
        self,
        product_id: str,
        box_change: int,
        kg_change: Any,
        quantity_box: int,
        quantity_kg: Any,
    ):
        super().__init__(
            f"Stock change ({box_change} boxes, {kg_change} kg) exceeds available "
            f"stock ({quantity_box} boxes, {quantity_kg} kg) for {product_id}",
            code="STOCK_CONFLICT",
            details={
                "product_id": product_id,
                "box_change": box_change,
                "kg_change": str(kg_change),
                "quantity_box": quantity_box,
                "quantity_kg": str(quantity_kg),
            },
        )


class SaleNotMutableError(ConflictError):
    """Change requested on a deleted sale."""

    def __init__(self, sale_id: str, status: str):
        super().__init__(
            f"Sale {sale_id} is {status} and cannot be changed",
            code="SALE_NOT_MUTABLE",
            details={"sale_id": sale_id, "status": status},
        )


class SaleChangedError(ConflictError):
    """The sale no longer matches the snapshot taken when the audit was requested."""

    def __init__(self, sale_id: str, audit_id: str, fields: list[str]):
        super().__init__(
            f"Sale {sale_id} changed since audit {audit_id} was requested",
            code="SALE_CHANGED",
            details={"sale_id": sale_id, "audit_id": audit_id, "fields": fields},
        )


class AuditAlreadyDecidedError(ConflictError):
    """Audit record has already left the pending state."""

    def __init__(self, audit_id: str, status: str):
        super().__init__(
            f"Audit record {audit_id} already processed ({status})",
            code="AUDIT_ALREADY_DECIDED",
            details={"audit_id": audit_id, "approval_status": status},
        )


class AuditRevalidationError(ConflictError):
    """Approving a quantity increase is no longer feasible against current stock."""

    def __init__(self, audit_id: str, reason: str, details: dict[str, Any] | None = None):
        super().__init__(
            f"Audit {audit_id} cannot be applied: {reason}",
            code="AUDIT_REVALIDATION_FAILED",
            details={"audit_id": audit_id, "reason": reason, **(details or {})},
        )


# Ledger Exceptions
class ProductHaltedError(BoxStockError):
    """Product mutations are suspended until its ledger is reconciled."""

    def __init__(self, product_id: str, reason: str | None = None):
        super().__init__(
            f"Product {product_id} requires manual reconciliation",
            code="PRODUCT_HALTED",
            details={"product_id": product_id, "reason": reason},
        )


class LedgerInvariantError(BoxStockError):
    """Replaying the ledger does not reproduce the stored stock."""

    def __init__(
        self,
        product_id: str,
        expected_box: int,
        expected_kg: Any,
        actual_box: int,
        actual_kg: Any,
    ):
        super().__init__(
            f"Ledger replay for {product_id} gives {expected_box} boxes / {expected_kg} kg, "
            f"stock holds {actual_box} boxes / {actual_kg} kg",
            code="LEDGER_INVARIANT_VIOLATED",
            details={
                "product_id": product_id,
                "ledger_box": expected_box,
                "ledger_kg": str(expected_kg),
                "stock_box": actual_box,
                "stock_kg": str(actual_kg),
            },
        )


class AllocationRejectedError(ConflictError):
    """A sale was refused because stock cannot serve it."""

    def __init__(self, product_id: str, reason: str, allocation: dict[str, Any]):
        super().__init__(
            f"Sale cannot be fulfilled for {product_id}: {reason}",
            code="ALLOCATION_INFEASIBLE",
            details={"product_id": product_id, "reason": reason, "allocation": allocation},
        )
