"""Abstract interface for per-product atomic units of work."""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import TypeVar

from boxstock.core.interfaces.audit_store import IAuditStore
from boxstock.core.interfaces.movement_store import IMovementStore
from boxstock.core.interfaces.product_store import IProductStore
from boxstock.core.interfaces.sale_store import ISaleStore

T = TypeVar("T")


@dataclass
class StockSession:
    """Stores bound to one open transaction."""

    products: IProductStore
    sales: ISaleStore
    movements: IMovementStore
    audits: IAuditStore


class IUnitOfWork(ABC):
    """Serializes stock mutations per product and commits them atomically."""

    @abstractmethod
    def transaction(self, product_id: str) -> AbstractAsyncContextManager[StockSession]:
        """Open an exclusive transaction for a product.

        Commits when the block exits normally, rolls back on any exception.
        """
        pass

    @abstractmethod
    async def run(
        self,
        product_id: str,
        work: Callable[[StockSession], Awaitable[T]],
    ) -> T:
        """Run ``work`` inside ``transaction(product_id)``, retrying lock timeouts."""
        pass
