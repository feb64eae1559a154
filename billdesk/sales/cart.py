from typing import Dict, Iterable, List, Optional, Tuple

from loguru import logger

from billdesk.errors import InvalidGstRate, NotFound, OutOfStock, QuantityOutOfRange
from billdesk.sales.schemas import CartLine, CartTotals
from billdesk.stock.catalog import CatalogStore
from billdesk.stock.products.schemas import Product


def money(value: float) -> float:
    # + 0.0 turns -0.0 into 0.0
    return round(value + 0.0, 2)


def compute_totals(subtotal: float, gst_percentage: float) -> CartTotals:
    """tax = subtotal * gst / 100, total = subtotal + tax, all to 2 places."""
    subtotal = money(subtotal)
    tax = money(subtotal * gst_percentage / 100)
    return CartTotals(subtotal=subtotal, tax=tax, total=money(subtotal + tax))


class Cart:
    """
    The in-progress bill of one terminal.

    Lines are keyed by product code in insertion order. Every stock check
    reads the terminal's catalog snapshot.
    """

    def __init__(self, catalog: CatalogStore, gst_percentage: float = 18.0):
        self.catalog = catalog
        self._lines: Dict[str, CartLine] = {}
        self.gst_percentage = 0.0
        self.set_gst_percentage(gst_percentage)

    # ---------- read model ----------
    @property
    def items(self) -> List[CartLine]:
        return list(self._lines.values())

    def get(self, code: str) -> Optional[CartLine]:
        return self._lines.get(code)

    def is_empty(self) -> bool:
        return not self._lines

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, code: str) -> bool:
        return code in self._lines

    def totals(self) -> CartTotals:
        subtotal = sum(line.total_price for line in self._lines.values())
        return compute_totals(subtotal, self.gst_percentage)

    # ---------- mutations ----------
    def add_by_code(self, code: str) -> CartLine:
        product = self.catalog.require(code)
        return self._add(product, self.catalog.current_stock(code))

    def add_by_product(self, product: Product) -> CartLine:
        # prefer the catalog's stock figure, the product handed in may be stale
        known = self.catalog.find_by_code(product.product_code)
        stock = known.quantity if known else product.quantity
        return self._add(product, stock)

    def _add(self, product: Product, stock: int) -> CartLine:
        code = product.product_code

        if stock <= 0:
            raise OutOfStock(code, product.name, 0)

        line = self._lines.get(code)
        if line:
            if line.quantity + 1 > stock:
                raise OutOfStock(code, product.name, stock)
            line.quantity += 1
            return line

        line = CartLine(
            product_code=code,
            product_id=product.product_id,
            product_name=product.name,
            price=product.selling_price,
            quantity=1,
        )
        self._lines[code] = line
        return line

    def _line(self, code: str) -> CartLine:
        line = self._lines.get(code)
        if line is None:
            raise NotFound(f"Product {code} is not in the cart", code=code)
        return line

    def set_quantity_delta(self, code: str, delta: int) -> Optional[str]:
        """
        Move a line's quantity by delta.
        Returns a warning instead of raising when stock would be exceeded.
        """
        line = self._line(code)

        if delta > 0:
            stock = self.catalog.current_stock(code)
            if line.quantity + delta > stock:
                warning = f"Cannot add more. Only {stock} available in stock."
                logger.debug(f"{code}: {warning}")
                return warning
            line.quantity += delta
        elif delta < 0:
            line.quantity = max(1, line.quantity + delta)

        return None

    def set_quantity(self, code: str, quantity: int) -> CartLine:
        line = self._line(code)

        if quantity < 1:
            raise QuantityOutOfRange([code], "Quantity must be at least 1")

        stock = self.catalog.current_stock(code)
        if quantity > stock:
            raise OutOfStock(code, line.product_name, stock)

        line.quantity = quantity
        return line

    def remove(self, code: str) -> None:
        self._lines.pop(code, None)

    def clear(self) -> None:
        self._lines.clear()

    def settle(self, billed: Iterable[Tuple[str, int]]) -> None:
        """
        Take billed (code, quantity) pairs out of the cart.
        Units scanned after the bill was built stay in the cart.
        """
        for code, quantity in billed:
            line = self._lines.get(code)
            if line is None:
                continue
            if line.quantity > quantity:
                line.quantity -= quantity
            else:
                del self._lines[code]

    def set_gst_percentage(self, rate: float) -> CartTotals:
        if rate is None or rate < 0:
            raise InvalidGstRate(rate)
        self.gst_percentage = float(rate)
        return self.totals()
