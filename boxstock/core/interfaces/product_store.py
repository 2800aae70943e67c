"""Abstract interface for product stock storage."""

from abc import ABC, abstractmethod
from decimal import Decimal

from boxstock.core.entities.product import ProductStock


class IProductStore(ABC):
    """Interface for product stock persistence."""

    @abstractmethod
    async def create_product(self, product: ProductStock) -> ProductStock:
        """Create a new product with zero stock."""
        pass

    @abstractmethod
    async def get_product(self, product_id: str) -> ProductStock | None:
        """Get product by ID."""
        pass

    @abstractmethod
    async def get_product_by_sku(self, sku: str) -> ProductStock | None:
        """Get product by SKU."""
        pass

    @abstractmethod
    async def list_products(self, limit: int = 100, offset: int = 0) -> list[ProductStock]:
        """List products with pagination."""
        pass

    @abstractmethod
    async def count_products(self) -> int:
        """Count all products."""
        pass

    @abstractmethod
    async def list_low_stock(self, limit: int = 100, offset: int = 0) -> list[ProductStock]:
        """List products whose box-equivalent units are at or below their threshold."""
        pass

    @abstractmethod
    async def apply_stock_change(
        self, product_id: str, box_change: int, kg_change: Decimal
    ) -> ProductStock:
        """Add signed deltas to a product's boxes and loose kg.

        Raises StockConflictError when either quantity would go negative.
        """
        pass

    @abstractmethod
    async def set_stock(
        self, product_id: str, quantity_box: int, quantity_kg: Decimal
    ) -> ProductStock:
        """Overwrite a product's stock (ledger resynchronization only)."""
        pass

    @abstractmethod
    async def set_halted(
        self, product_id: str, halted: bool, reason: str | None = None
    ) -> None:
        """Suspend or resume stock mutations for a product."""
        pass
