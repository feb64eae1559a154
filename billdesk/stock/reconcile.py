import asyncio
from typing import Iterable, List

from loguru import logger
from pydantic import BaseModel

from billdesk.database import DocumentStore
from billdesk.errors import BillingError, NotFound
from billdesk.sales.schemas import StockItem
from billdesk.stock.catalog import CatalogStore
from billdesk.stock.products.service import PRODUCTS


class ReconcileResult(BaseModel):
    """Outcome of a batch of stock deductions. Non-empty failed_codes is a partial failure."""
    failed_codes: List[str] = []

    @property
    def ok(self) -> bool:
        return not self.failed_codes

    @property
    def partial_failure(self) -> bool:
        return bool(self.failed_codes)


class StockReconciler:
    def __init__(self, store: DocumentStore, catalog: CatalogStore):
        self.store = store
        self.catalog = catalog

    # --------------------------
    # Sale: deduct, never below zero
    # --------------------------
    async def _deduct(self, item: StockItem) -> None:
        product = self.catalog.require(item.product_code)

        # an oversell is absorbed at zero rather than rejected
        new_quantity = max(0, product.quantity - item.quantity)

        await self.store.update(PRODUCTS, product.product_id, {"quantity": new_quantity})
        logger.debug(f"Stock for {item.product_code}: {product.quantity} -> {new_quantity}")

    async def apply_sale_deductions(self, items: Iterable[StockItem]) -> ReconcileResult:
        items = list(items)

        # independent updates, no cross-item atomicity
        outcomes = await asyncio.gather(
            *(self._deduct(item) for item in items),
            return_exceptions=True,
        )

        failed = []
        for item, outcome in zip(items, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, BillingError):
                    logger.exception(outcome)
                logger.warning(f"Stock deduction failed for {item.product_code}: {outcome}")
                failed.append(item.product_code)

        try:
            await self.catalog.refresh()
        except BillingError as e:
            logger.warning(f"Catalog refresh after stock deduction failed: {e.detail}")

        return ReconcileResult(failed_codes=failed)

    # --------------------------
    # Return: restock, stop at the first failure
    # --------------------------
    async def apply_return_restocks(self, items: Iterable[StockItem]) -> None:
        for item in items:
            product = self.catalog.require(item.product_code)

            doc = await self.store.get(PRODUCTS, product.product_id)
            if doc is None:
                raise NotFound(
                    f"Product document not found: {product.product_id}",
                    code=item.product_code,
                )

            current = doc.get("quantity") or 0
            await self.store.update(
                PRODUCTS, product.product_id, {"quantity": current + item.quantity}
            )
            logger.info(f"Restocked {item.quantity} units of {item.product_code}")
