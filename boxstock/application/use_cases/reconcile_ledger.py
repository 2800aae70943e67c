"""
Reconcile Ledger Use Case.

Replays a product's movements and compares the result with its stored
stock. A mismatch halts further mutations of the product until an operator
resynchronizes it.
"""

from dataclasses import dataclass

from boxstock.application.dto.responses import ReconciliationResponse
from boxstock.config import get_logger
from boxstock.core.exceptions import ProductNotFoundError
from boxstock.core.interfaces.product_store import IProductStore
from boxstock.core.interfaces.unit_of_work import IUnitOfWork, StockSession
from boxstock.core.services.ledger import ReconciliationReport, reconcile

logger = get_logger(__name__)


@dataclass
class ReconciliationResult:
    """Reconciliation report plus the product's halt state afterwards."""

    report: ReconciliationReport
    mutations_halted: bool
    resynchronized: bool = False


class ReconcileLedgerUseCase:
    """Check and repair agreement between the ledger and stored stock."""

    def __init__(
        self,
        unit_of_work: IUnitOfWork | None = None,
        product_store: IProductStore | None = None,
    ):
        self._unit_of_work = unit_of_work
        self._product_store = product_store

    async def _get_unit_of_work(self) -> IUnitOfWork:
        if self._unit_of_work is None:
            from boxstock.infrastructure.storage.sqlite import get_unit_of_work

            self._unit_of_work = await get_unit_of_work()
        return self._unit_of_work

    async def _get_product_store(self) -> IProductStore:
        if self._product_store is None:
            from boxstock.infrastructure.storage.sqlite import get_product_store

            self._product_store = await get_product_store()
        return self._product_store

    async def check(self, product_id: str) -> ReconciliationResult:
        """Replay the ledger; halt the product if it disagrees with stock."""
        uow = await self._get_unit_of_work()

        async def work(session: StockSession) -> ReconciliationResult:
            product = await session.products.get_product(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)

            report = reconcile(product, await session.movements.history(product_id))
            halted = product.mutations_halted
            if not report.balanced and not halted:
                logger.critical(
                    "ledger_mismatch_detected",
                    product_id=product_id,
                    box_drift=report.box_drift,
                    kg_drift=str(report.kg_drift),
                )
                await session.products.set_halted(
                    product_id, True, "ledger replay does not match stock"
                )
                halted = True
            return ReconciliationResult(report=report, mutations_halted=halted)

        result = await uow.run(product_id, work)
        logger.info(
            "ledger_reconciled",
            product_id=product_id,
            balanced=result.report.balanced,
            movements=result.report.movement_count,
        )
        return result

    async def check_all(self) -> list[ReconciliationResult]:
        """Reconcile every product."""
        store = await self._get_product_store()
        total = await store.count_products()
        results: list[ReconciliationResult] = []
        offset = 0
        while offset < total:
            products = await store.list_products(limit=100, offset=offset)
            if not products:
                break
            for product in products:
                results.append(await self.check(product.product_id))
            offset += len(products)
        return results

    async def resync(self, product_id: str, performed_by: str) -> ReconciliationResult:
        """
        Overwrite stored stock with the ledger balance and lift the halt.

        The ledger is the source of truth; no movement is written.
        """
        uow = await self._get_unit_of_work()

        async def work(session: StockSession) -> ReconciliationResult:
            product = await session.products.get_product(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)

            before = reconcile(product, await session.movements.history(product_id))
            if not before.balanced:
                product = await session.products.set_stock(
                    product_id, before.ledger_box, before.ledger_kg
                )
            await session.products.set_halted(product_id, False)

            logger.warning(
                "ledger_resynchronized",
                product_id=product_id,
                performed_by=performed_by,
                box_drift=before.box_drift,
                kg_drift=str(before.kg_drift),
            )
            after = reconcile(product, await session.movements.history(product_id))
            return ReconciliationResult(
                report=after, mutations_halted=False, resynchronized=not before.balanced
            )

        return await uow.run(product_id, work)

    def to_response(self, result: ReconciliationResult) -> ReconciliationResponse:
        """Convert result to API response."""
        report = result.report
        return ReconciliationResponse(
            product_id=report.product_id,
            balanced=report.balanced,
            ledger_box=report.ledger_box,
            ledger_kg=report.ledger_kg,
            stock_box=report.stock_box,
            stock_kg=report.stock_kg,
            box_drift=report.box_drift,
            kg_drift=report.kg_drift,
            movement_count=report.movement_count,
            mutations_halted=result.mutations_halted,
            resynchronized=result.resynchronized,
        )
