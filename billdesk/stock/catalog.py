from typing import Dict, List, Optional

from loguru import logger

from billdesk.database import DocumentStore, decode
from billdesk.errors import NotFound
from billdesk.stock.products.schemas import Product
from billdesk.stock.products.service import PRODUCTS


class CatalogStore:
    """
    Local snapshot of every product, keyed by product code.

    The snapshot is only ever replaced wholesale by refresh(). If the
    store or a document fails, the previous snapshot stays in place and
    the error propagates to the caller.
    """

    def __init__(self, store: DocumentStore):
        self.store = store
        self._products: Dict[str, Product] = {}
        self.loaded = False

    async def refresh(self) -> None:
        docs = await self.store.query(PRODUCTS)
        products = [decode(Product, d, PRODUCTS) for d in docs]

        self._products = {p.product_code: p for p in products}
        self.loaded = True
        logger.debug(f"Catalog refreshed: {len(self._products)} products")

    def find_by_code(self, code: str) -> Optional[Product]:
        return self._products.get(code)

    def require(self, code: str) -> Product:
        product = self.find_by_code(code)
        if product is None:
            raise NotFound(f"Product not found with code: {code}", code=code)
        return product

    def current_stock(self, code: str) -> int:
        product = self.find_by_code(code)
        return product.quantity if product else 0

    def products(self) -> List[Product]:
        return list(self._products.values())

    def search(self, term: Optional[str] = None, category: Optional[str] = None) -> List[Product]:
        result = self.products()

        if category:
            result = [p for p in result if p.category.name == category]

        if term:
            term = term.lower().strip()
            result = [
                p for p in result
                if term in p.name.lower() or term in p.product_code.lower()
            ]

        return sorted(result, key=lambda p: p.name.lower())

    def __len__(self) -> int:
        return len(self._products)
