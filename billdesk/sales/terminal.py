from typing import Dict

from billdesk.config import settings
from billdesk.database import DocumentStore
from billdesk.sales.cart import Cart
from billdesk.stock.catalog import CatalogStore
from billdesk.stock.reconcile import StockReconciler


class Terminal:
    """State owned by one billing counter: its catalog snapshot, cart and reconciler."""

    def __init__(self, terminal_id: str, store: DocumentStore, gst_percentage: float | None = None):
        self.terminal_id = terminal_id
        self.store = store
        self.catalog = CatalogStore(store)
        self.cart = Cart(
            self.catalog,
            settings.DEFAULT_GST_PERCENTAGE if gst_percentage is None else gst_percentage,
        )
        self.reconciler = StockReconciler(store, self.catalog)

    async def ensure_catalog(self) -> CatalogStore:
        if not self.catalog.loaded:
            await self.catalog.refresh()
        return self.catalog


class TerminalRegistry:
    def __init__(self, store: DocumentStore):
        self.store = store
        self._terminals: Dict[str, Terminal] = {}

    def get(self, terminal_id: str) -> Terminal:
        terminal = self._terminals.get(terminal_id)
        if terminal is None:
            terminal = Terminal(terminal_id, self.store)
            self._terminals[terminal_id] = terminal
        return terminal

    def drop(self, terminal_id: str) -> bool:
        return self._terminals.pop(terminal_id, None) is not None

    def __len__(self) -> int:
        return len(self._terminals)
