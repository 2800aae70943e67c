"""Abstract interface for sale storage."""

from abc import ABC, abstractmethod

from boxstock.core.entities.sale import PaymentMethod, PaymentStatus, Sale


class ISaleStore(ABC):
    """Interface for sale persistence."""

    @abstractmethod
    async def create_sale(self, sale: Sale) -> Sale:
        """Insert a committed sale."""
        pass

    @abstractmethod
    async def get_sale(self, sale_id: str) -> Sale | None:
        """Get sale by ID."""
        pass

    @abstractmethod
    async def update_sale(self, sale: Sale) -> Sale:
        """Persist quantities, amounts, client fields and status of a sale."""
        pass

    @abstractmethod
    async def list_sales(
        self,
        product_id: str | None = None,
        payment_status: PaymentStatus | None = None,
        payment_method: PaymentMethod | None = None,
        include_deleted: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Sale]:
        """List sales, newest first."""
        pass

    @abstractmethod
    async def count_sales(
        self,
        product_id: str | None = None,
        payment_status: PaymentStatus | None = None,
        payment_method: PaymentMethod | None = None,
        include_deleted: bool = False,
    ) -> int:
        """Count sales matching the same filters as list_sales."""
        pass
