"""SQLite storage implementations."""

from boxstock.infrastructure.storage.sqlite.audit_store import SQLiteAuditStore
from boxstock.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_exclusive_transaction,
    get_pool,
    get_transaction,
)
from boxstock.infrastructure.storage.sqlite.movement_store import SQLiteMovementStore
from boxstock.infrastructure.storage.sqlite.product_store import SQLiteProductStore
from boxstock.infrastructure.storage.sqlite.sale_store import SQLiteSaleStore
from boxstock.infrastructure.storage.sqlite.unit_of_work import SQLiteUnitOfWork, run_with_retry

# Singleton instances
_product_store: SQLiteProductStore | None = None
_sale_store: SQLiteSaleStore | None = None
_movement_store: SQLiteMovementStore | None = None
_audit_store: SQLiteAuditStore | None = None
_unit_of_work: SQLiteUnitOfWork | None = None


async def get_product_store() -> SQLiteProductStore:
    """Get singleton product store instance."""
    global _product_store
    if _product_store is None:
        _product_store = SQLiteProductStore()
    return _product_store


async def get_sale_store() -> SQLiteSaleStore:
    """Get singleton sale store instance."""
    global _sale_store
    if _sale_store is None:
        _sale_store = SQLiteSaleStore()
    return _sale_store


async def get_movement_store() -> SQLiteMovementStore:
    """Get singleton stock movement store instance."""
    global _movement_store
    if _movement_store is None:
        _movement_store = SQLiteMovementStore()
    return _movement_store


async def get_audit_store() -> SQLiteAuditStore:
    """Get singleton audit store instance."""
    global _audit_store
    if _audit_store is None:
        _audit_store = SQLiteAuditStore()
    return _audit_store


async def get_unit_of_work() -> SQLiteUnitOfWork:
    """Get singleton unit of work."""
    global _unit_of_work
    if _unit_of_work is None:
        _unit_of_work = SQLiteUnitOfWork()
    return _unit_of_work


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    "get_exclusive_transaction",
    # Store classes
    "SQLiteAuditStore",
    "SQLiteMovementStore",
    "SQLiteProductStore",
    "SQLiteSaleStore",
    "SQLiteUnitOfWork",
    "run_with_retry",
    # Factory functions
    "get_audit_store",
    "get_movement_store",
    "get_product_store",
    "get_sale_store",
    "get_unit_of_work",
]
