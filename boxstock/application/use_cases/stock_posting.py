"""Posting stock movements inside a unit of work."""

from collections.abc import Awaitable, Callable
from typing import TypeVar

from boxstock.config import get_logger, get_settings
from boxstock.core.entities.product import ProductStock
from boxstock.core.entities.stock_movement import StockMovement
from boxstock.core.exceptions import (
    LedgerInvariantError,
    ProductHaltedError,
    ProductNotFoundError,
)
from boxstock.core.interfaces.unit_of_work import IUnitOfWork, StockSession
from boxstock.core.services.ledger import reconcile

logger = get_logger(__name__)

T = TypeVar("T")


async def load_mutable_product(session: StockSession, product_id: str) -> ProductStock:
    """Read a product inside the transaction, refusing halted products."""
    product = await session.products.get_product(product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    if product.mutations_halted:
        raise ProductHaltedError(product_id, product.halted_reason)
    return product


async def post_movements(
    session: StockSession,
    product_id: str,
    movements: list[StockMovement],
) -> ProductStock:
    """
    Append movements and apply each to the product's stock, in order.

    When ledger verification is enabled the product's full history is
    replayed afterwards and must reproduce the new stock exactly.

    Raises:
        StockConflictError: If a movement would drive stock negative
        LedgerInvariantError: If replay disagrees with stored stock
    """
    product = await session.products.get_product(product_id)
    if product is None:
        raise ProductNotFoundError(product_id)

    for movement in movements:
        await session.movements.append(movement)
        product = await session.products.apply_stock_change(
            product_id, movement.box_change, movement.kg_change
        )

    if get_settings().inventory.verify_ledger_on_write:
        history = await session.movements.history(product_id)
        report = reconcile(product, history)
        if not report.balanced:
            raise LedgerInvariantError(
                product_id=product_id,
                expected_box=report.ledger_box,
                expected_kg=report.ledger_kg,
                actual_box=report.stock_box,
                actual_kg=report.stock_kg,
            )
    return product


async def run_stock_mutation(
    uow: IUnitOfWork,
    product_id: str,
    work: Callable[[StockSession], Awaitable[T]],
) -> T:
    """
    Run ``work`` atomically for a product.

    A ledger invariant violation rolls the work back, halts further
    mutations of the product in a separate transaction and re-raises.
    """
    try:
        return await uow.run(product_id, work)
    except LedgerInvariantError as exc:
        logger.critical("ledger_invariant_violated", **exc.details)
        async with uow.transaction(product_id) as session:
            await session.products.set_halted(product_id, True, exc.message)
        raise
