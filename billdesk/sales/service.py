from datetime import date, datetime
from typing import Dict, List, Optional

from loguru import logger

from billdesk.database import DocumentStore, decode, encode
from billdesk.errors import NotFound, PersistenceError
from billdesk.sales import billing, schemas
from billdesk.sales.schemas import Bill, CustomerInfo, PaymentMethod, StockItem
from billdesk.sales.terminal import Terminal

BILLS = "bills"


def cart_view(terminal: Terminal, warning: Optional[str] = None) -> schemas.CartOut:
    cart = terminal.cart
    return schemas.CartOut(
        terminal_id=terminal.terminal_id,
        items=cart.items,
        gst_percentage=cart.gst_percentage,
        totals=cart.totals(),
        warning=warning,
    )


async def save_bill(store: DocumentStore, bill: Bill) -> None:
    try:
        await store.set(BILLS, bill.bill_id, encode(bill))
    except PersistenceError:
        logger.error(f"Could not save bill {bill.bill_id}")
        raise


# ============================================================
# SALE: validate -> persist bill -> deduct stock -> refresh
# ============================================================
async def checkout(
    terminal: Terminal,
    customer: Optional[CustomerInfo] = None,
    payment_method: PaymentMethod = PaymentMethod.CASH,
) -> schemas.CheckoutOut:
    cart = terminal.cart

    bill = await billing.finalize_sale(cart, terminal.catalog, customer, payment_method)

    # no stock is touched unless the bill is stored
    await save_bill(terminal.store, bill)
    cart.settle((i.product_code, i.quantity) for i in bill.items)

    result = await terminal.reconciler.apply_sale_deductions(
        StockItem(product_code=i.product_code, quantity=i.quantity) for i in bill.items
    )

    if result.partial_failure:
        logger.warning(
            f"Bill {bill.bill_id} saved but stock not updated for {result.failed_codes}"
        )
        message = (
            "Bill created, but stock could not be updated for: "
            + ", ".join(result.failed_codes)
        )
    else:
        message = "Bill created successfully and stock updated"

    logger.info(f"Bill {bill.bill_id} created: total {bill.total} via {bill.payment_method.value}")

    return schemas.CheckoutOut(
        bill=bill,
        stock_updated=result.ok,
        failed_codes=result.failed_codes,
        message=message,
    )


# ============================================================
# RETURN: validate -> restock -> persist return bill -> refresh
# ============================================================
async def process_return(
    terminal: Terminal,
    original_bill_id: str,
    quantities: Dict[str, int],
) -> Bill:
    original = await get_bill(terminal.store, original_bill_id)

    return_bill = billing.finalize_return(original, quantities)

    await terminal.catalog.refresh()

    # restock strictly before the return bill exists
    await terminal.reconciler.apply_return_restocks(
        StockItem(product_code=i.product_code, quantity=i.quantity)
        for i in return_bill.items
    )

    await save_bill(terminal.store, return_bill)
    logger.info(
        f"Return bill {return_bill.bill_id} created for {original.bill_id}: total {return_bill.total}"
    )

    try:
        await terminal.catalog.refresh()
    except PersistenceError as e:
        logger.warning(f"Catalog refresh after return failed: {e.detail}")

    return return_bill


# ============================================================
# Bill queries
# ============================================================
async def get_bill(store: DocumentStore, bill_id: str) -> Bill:
    doc = await store.get(BILLS, bill_id)
    if doc is None:
        raise NotFound(f"Bill {bill_id} not found")
    return decode(Bill, doc, BILLS)


def bill_date(bill: Bill) -> date:
    # Python 3.10 fromisoformat does not accept a trailing Z
    value = bill.date[:-1] + "+00:00" if bill.date.endswith("Z") else bill.date
    return datetime.fromisoformat(value).date()


def filter_by_date(bills: List[Bill], start_date: Optional[date], end_date: Optional[date]) -> List[Bill]:
    if start_date:
        bills = [b for b in bills if bill_date(b) >= start_date]
    if end_date:
        bills = [b for b in bills if bill_date(b) <= end_date]
    return bills


async def list_bills(
    store: DocumentStore,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    is_return: Optional[bool] = None,
    customer_name: Optional[str] = None,
    skip: int = 0,
    limit: Optional[int] = 100,
) -> List[Bill]:
    filters = []
    if is_return is not None:
        filters.append(("isReturn", "==", is_return))

    docs = await store.query(BILLS, filters, order_by="date", descending=True)
    bills = filter_by_date([decode(Bill, d, BILLS) for d in docs], start_date, end_date)

    if customer_name:
        term = customer_name.lower().strip()
        bills = [b for b in bills if b.customer_name and term in b.customer_name.lower()]

    if limit is None:
        return bills[skip:]
    return bills[skip: skip + limit]


async def returns_for_bill(store: DocumentStore, bill_id: str) -> List[Bill]:
    docs = await store.query(BILLS, [("originalBillId", "==", bill_id)], order_by="date")
    return [decode(Bill, d, BILLS) for d in docs]
