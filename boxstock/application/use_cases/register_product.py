"""Register Product Use Case."""

from boxstock.application.dto.requests import CreateProductRequest
from boxstock.application.dto.responses import ProductResponse
from boxstock.application.use_cases.stock_posting import post_movements, run_stock_mutation
from boxstock.config import get_logger
from boxstock.core.entities.product import ProductStock, new_id
from boxstock.core.entities.stock_movement import MovementType, StockMovement
from boxstock.core.exceptions import DuplicateProductError
from boxstock.core.interfaces.product_store import IProductStore
from boxstock.core.interfaces.unit_of_work import IUnitOfWork, StockSession

logger = get_logger(__name__)


class RegisterProductUseCase:
    """
    Create a product.

    Stock starts at zero; any opening quantities are posted as a new_stock
    movement so the ledger reproduces the stock from the first write.
    """

    def __init__(
        self,
        product_store: IProductStore | None = None,
        unit_of_work: IUnitOfWork | None = None,
    ):
        self._product_store = product_store
        self._unit_of_work = unit_of_work

    async def _get_product_store(self) -> IProductStore:
        if self._product_store is None:
            from boxstock.infrastructure.storage.sqlite import get_product_store

            self._product_store = await get_product_store()
        return self._product_store

    async def _get_unit_of_work(self) -> IUnitOfWork:
        if self._unit_of_work is None:
            from boxstock.infrastructure.storage.sqlite import get_unit_of_work

            self._unit_of_work = await get_unit_of_work()
        return self._unit_of_work

    async def execute(self, request: CreateProductRequest, performed_by: str) -> ProductStock:
        """Execute register product use case."""
        store = await self._get_product_store()
        if request.sku and await store.get_product_by_sku(request.sku):
            raise DuplicateProductError("sku", request.sku)

        product = ProductStock(
            product_id=request.product_id or new_id("prd"),
            name=request.name,
            sku=request.sku,
            box_to_kg_ratio=request.box_to_kg_ratio,
            cost_per_box=request.cost_per_box,
            cost_per_kg=request.cost_per_kg,
            price_per_box=request.price_per_box,
            price_per_kg=request.price_per_kg,
            boxed_low_stock_threshold=request.boxed_low_stock_threshold,
        )

        async def work(session: StockSession) -> ProductStock:
            created = await session.products.create_product(product)
            if request.initial_boxes or request.initial_kg:
                opening = StockMovement(
                    product_id=created.product_id,
                    movement_type=MovementType.NEW_STOCK,
                    box_change=request.initial_boxes,
                    kg_change=request.initial_kg,
                    stock_addition_id=new_id("add"),
                    reason="Opening stock",
                    performed_by=performed_by,
                )
                created = await post_movements(session, created.product_id, [opening])
            return created

        uow = await self._get_unit_of_work()
        created = await run_stock_mutation(uow, product.product_id, work)

        logger.info(
            "product_registered",
            product_id=created.product_id,
            sku=created.sku,
            quantity_box=created.quantity_box,
            quantity_kg=str(created.quantity_kg),
        )
        return created

    def to_response(self, product: ProductStock) -> ProductResponse:
        return ProductResponse.from_entity(product)
