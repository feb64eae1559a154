import uuid
from datetime import date, datetime
from typing import List, Optional

import pytz
from loguru import logger

from billdesk.config import settings
from billdesk.database import DocumentStore, decode, encode
from billdesk.errors import InvalidAdjustment
from billdesk.stock.inventory import schemas
from billdesk.stock.inventory.schemas import StockActionType, StockTransaction
from billdesk.stock.products import service as product_service
from billdesk.stock.products.service import PRODUCTS, stock_status

STOCK_TRANSACTIONS = "stock-transactions"


# --------------------------
# Read-only: list stock
# --------------------------
async def list_stock(
    store: DocumentStore,
    status: Optional[str] = None,
    category: Optional[str] = None,
    sub_category: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "name",
) -> List[schemas.StockRow]:
    products = await product_service.get_products(store, category=category, name=search, status=status)

    if sub_category:
        products = [p for p in products if sub_category in p.category.sub_categories]

    if sort_by == "quantity":
        products.sort(key=lambda p: p.quantity)
    elif sort_by == "recent":
        # get_products already returns newest first
        pass
    else:
        products.sort(key=lambda p: p.name.lower())

    return [
        schemas.StockRow(
            product_id=p.product_id,
            product_code=p.product_code,
            product_name=p.name,
            category=p.category.name,
            quantity=p.quantity,
            status=stock_status(p.quantity),
        )
        for p in products
    ]


async def stock_overview(store: DocumentStore) -> schemas.StockOverview:
    products = await product_service.get_products(store)
    statuses = [stock_status(p.quantity) for p in products]

    return schemas.StockOverview(
        total_products=len(products),
        in_stock=statuses.count("normal"),
        low_stock=statuses.count("low"),
        out_of_stock=statuses.count("out"),
        low_stock_threshold=settings.LOW_STOCK_THRESHOLD,
    )


# --------------------------
# Manual adjustment
# --------------------------
async def adjust_stock(
    store: DocumentStore,
    adjustment: schemas.StockAdjustmentCreate,
) -> StockTransaction:
    product = await product_service.get_product_by_id(store, adjustment.product_id)
    previous = product.quantity

    if adjustment.action_type == StockActionType.ADD:
        if adjustment.quantity <= 0:
            raise InvalidAdjustment("Quantity to add must be positive")
        new_quantity = previous + adjustment.quantity
    elif adjustment.action_type == StockActionType.REMOVE:
        if adjustment.quantity <= 0:
            raise InvalidAdjustment("Quantity to remove must be positive")
        if adjustment.quantity > previous:
            raise InvalidAdjustment(
                f"Cannot remove {adjustment.quantity} units, only {previous} in stock"
            )
        new_quantity = previous - adjustment.quantity
    else:
        new_quantity = adjustment.quantity

    await store.update(PRODUCTS, product.product_id, {"quantity": new_quantity})

    transaction = StockTransaction(
        id=uuid.uuid4().hex,
        product_id=product.product_id,
        product_name=product.name,
        product_code=product.product_code,
        quantity=adjustment.quantity,
        previous_quantity=previous,
        new_quantity=new_quantity,
        action_type=adjustment.action_type,
        reason=adjustment.reason,
        timestamp=datetime.now(pytz.timezone(settings.TIMEZONE)),
        performed_by=adjustment.performed_by,
    )
    await store.set(STOCK_TRANSACTIONS, transaction.id, encode(transaction))

    logger.info(
        f"Stock {adjustment.action_type.value} for {product.product_code}: "
        f"{previous} -> {new_quantity} ({adjustment.reason or 'no reason'})"
    )

    return transaction


async def list_stock_transactions(
    store: DocumentStore,
    product_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[StockTransaction]:
    filters = [("productId", "==", product_id)] if product_id else []
    docs = await store.query(STOCK_TRANSACTIONS, filters, order_by="timestamp", descending=True)
    transactions = [decode(StockTransaction, d, STOCK_TRANSACTIONS) for d in docs]

    if start_date:
        transactions = [t for t in transactions if t.timestamp.date() >= start_date]
    if end_date:
        transactions = [t for t in transactions if t.timestamp.date() <= end_date]

    return transactions
