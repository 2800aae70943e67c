"""Abstract interface for the stock movement ledger."""

from abc import ABC, abstractmethod

from boxstock.core.entities.stock_movement import (
    MovementStatus,
    MovementType,
    StockMovement,
)


class IMovementStore(ABC):
    """Append-only stock movement persistence."""

    @abstractmethod
    async def append(self, movement: StockMovement) -> StockMovement:
        """Append a movement; assigns its sequence number."""
        pass

    @abstractmethod
    async def list_movements(
        self,
        product_id: str | None = None,
        movement_type: MovementType | None = None,
        status: MovementStatus | None = None,
        sale_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[StockMovement]:
        """List movements, newest first."""
        pass

    @abstractmethod
    async def count_movements(
        self,
        product_id: str | None = None,
        movement_type: MovementType | None = None,
        status: MovementStatus | None = None,
        sale_id: str | None = None,
    ) -> int:
        """Count movements matching the same filters as list_movements."""
        pass

    @abstractmethod
    async def history(self, product_id: str) -> list[StockMovement]:
        """All movements of a product in sequence order, for replay."""
        pass
