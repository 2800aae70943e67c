"""
Dependency injection container for FastAPI.

Provides stores and use case instances to route handlers.
"""

from fastapi import HTTPException, Request, status

from boxstock.application.use_cases import (
    CommitSaleUseCase,
    DecideAuditUseCase,
    PreviewSaleUseCase,
    ReconcileLedgerUseCase,
    RecordStockAdjustmentUseCase,
    RegisterProductUseCase,
    RequestSaleChangeUseCase,
)
from boxstock.config import get_settings
from boxstock.infrastructure.storage.sqlite import (
    SQLiteAuditStore,
    SQLiteMovementStore,
    SQLiteProductStore,
    SQLiteSaleStore,
    get_audit_store,
    get_movement_store,
    get_product_store,
    get_sale_store,
)


def get_actor(request: Request) -> str:
    """
    Identify the user performing a request.

    Authentication happens upstream; the caller's id arrives in a header.
    """
    header = get_settings().api.actor_header
    actor = (request.headers.get(header) or "").strip()
    if not actor:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {header} header",
        )
    return actor


# Store dependencies
async def get_products() -> SQLiteProductStore:
    """Get product store."""
    return await get_product_store()


async def get_sales() -> SQLiteSaleStore:
    """Get sale store."""
    return await get_sale_store()


async def get_movements() -> SQLiteMovementStore:
    """Get stock movement store."""
    return await get_movement_store()


async def get_audits() -> SQLiteAuditStore:
    """Get audit store."""
    return await get_audit_store()


# Use case dependencies
def get_preview_sale_use_case() -> PreviewSaleUseCase:
    return PreviewSaleUseCase()


def get_commit_sale_use_case() -> CommitSaleUseCase:
    return CommitSaleUseCase()


def get_request_sale_change_use_case() -> RequestSaleChangeUseCase:
    return RequestSaleChangeUseCase()


def get_decide_audit_use_case() -> DecideAuditUseCase:
    return DecideAuditUseCase()


def get_stock_adjustment_use_case() -> RecordStockAdjustmentUseCase:
    return RecordStockAdjustmentUseCase()


def get_register_product_use_case() -> RegisterProductUseCase:
    return RegisterProductUseCase()


def get_reconcile_ledger_use_case() -> ReconcileLedgerUseCase:
    return ReconcileLedgerUseCase()


def clamp_page(limit: int | None) -> int:
    """Apply the configured default and maximum page size."""
    inventory = get_settings().inventory
    if limit is None or limit <= 0:
        return inventory.default_page_size
    return min(limit, inventory.max_page_size)
