"""
Turning carts into bills.

finalize_sale() and finalize_return() only build Bill records; writing
them to the store and moving stock is left to sales.service, so a failed
write can be retried without recomputing anything.
"""
import secrets
import time
from datetime import datetime
from typing import Dict, Optional

import pytz
from loguru import logger

from billdesk.config import settings
from billdesk.errors import (
    EmptyCart,
    InsufficientStock,
    InvalidReturn,
    NoItemsSelected,
    QuantityOutOfRange,
)
from billdesk.sales.cart import Cart, compute_totals, money
from billdesk.sales.schemas import Bill, BillItem, CustomerInfo, PaymentMethod
from billdesk.stock.catalog import CatalogStore


def _suffix() -> str:
    return secrets.token_hex(3).upper()


def new_bill_id() -> str:
    return f"{settings.BILL_ID_PREFIX}-{int(time.time() * 1000)}-{_suffix()}"


def new_return_bill_id(original_bill_id: str) -> str:
    return f"{settings.RETURN_BILL_PREFIX}-{original_bill_id}-{_suffix()}"


def now_iso() -> str:
    return datetime.now(pytz.timezone(settings.TIMEZONE)).isoformat()


async def finalize_sale(
    cart: Cart,
    catalog: CatalogStore,
    customer: Optional[CustomerInfo] = None,
    payment_method: PaymentMethod = PaymentMethod.CASH,
) -> Bill:
    if cart.is_empty():
        raise EmptyCart()

    # 1️⃣ Re-validate against live stock, not the snapshot the cart was built on
    await catalog.refresh()

    short = [
        line.product_code
        for line in cart.items
        if catalog.current_stock(line.product_code) < line.quantity
    ]
    if short:
        logger.warning(f"Checkout blocked, insufficient stock for {short}")
        raise InsufficientStock(short)

    # 2️⃣ Identity
    bill_id = new_bill_id()

    # 3️⃣ Snapshot items by value
    items = [
        BillItem(
            product_code=line.product_code,
            product_name=line.product_name,
            quantity=line.quantity,
            price=line.price,
            total_price=money(line.total_price),
        )
        for line in cart.items
    ]

    # 4️⃣ Freeze totals
    totals = compute_totals(sum(i.total_price for i in items), cart.gst_percentage)

    customer = customer or CustomerInfo()

    return Bill(
        bill_id=bill_id,
        date=now_iso(),
        items=items,
        subtotal=totals.subtotal,
        tax=totals.tax,
        total=totals.total,
        gst_percentage=cart.gst_percentage,
        payment_method=payment_method,
        customer_name=customer.customer_name,
        customer_phone=customer.customer_phone,
        is_return=False,
    )


def finalize_return(original: Bill, return_quantities: Dict[str, int]) -> Bill:
    if original.is_return:
        raise InvalidReturn()

    requested = {code: qty for code, qty in return_quantities.items() if qty != 0}
    if not requested:
        raise NoItemsSelected()

    sold = {item.product_code: item for item in original.items}

    bad = [
        code for code, qty in requested.items()
        if code not in sold or qty < 0 or qty > sold[code].quantity
    ]
    if bad:
        raise QuantityOutOfRange(bad)

    # keep the original bill's line order
    items = [
        BillItem(
            product_code=item.product_code,
            product_name=item.product_name,
            quantity=requested[item.product_code],
            price=item.price,
            total_price=money(-(requested[item.product_code] * item.price)),
        )
        for item in original.items
        if item.product_code in requested
    ]

    gst = original.gst_percentage
    if gst is None:
        gst = settings.DEFAULT_GST_PERCENTAGE
        logger.warning(
            f"Bill {original.bill_id} has no GST rate, returning at default {gst}%"
        )

    totals = compute_totals(sum(i.total_price for i in items), gst)

    return Bill(
        bill_id=new_return_bill_id(original.bill_id),
        date=now_iso(),
        items=items,
        subtotal=totals.subtotal,
        tax=totals.tax,
        total=totals.total,
        gst_percentage=gst,
        payment_method=original.payment_method,
        customer_name=original.customer_name,
        customer_phone=original.customer_phone,
        is_return=True,
        original_bill_id=original.bill_id,
    )
