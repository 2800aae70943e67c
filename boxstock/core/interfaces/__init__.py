"""Store and unit-of-work interfaces."""

from boxstock.core.interfaces.audit_store import IAuditStore
from boxstock.core.interfaces.movement_store import IMovementStore
from boxstock.core.interfaces.product_store import IProductStore
from boxstock.core.interfaces.sale_store import ISaleStore
from boxstock.core.interfaces.unit_of_work import IUnitOfWork, StockSession

__all__ = [
    "IAuditStore",
    "IMovementStore",
    "IProductStore",
    "ISaleStore",
    "IUnitOfWork",
    "StockSession",
]
