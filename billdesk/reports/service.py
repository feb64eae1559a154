from datetime import date, datetime
from io import BytesIO
from typing import List, Optional

import pandas as pd
import pytz

from billdesk.config import settings
from billdesk.credit import service as credit_service
from billdesk.database import DocumentStore
from billdesk.reports import schemas
from billdesk.sales import service as sales_service
from billdesk.sales.schemas import PaymentMethod
from billdesk.stock.inventory import service as inventory_service
from billdesk.stock.products import service as product_service
from billdesk.stock.products.schemas import Product


async def sales_summary(
    store: DocumentStore,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> schemas.SalesSummary:
    bills = await sales_service.list_bills(
        store, start_date=start_date, end_date=end_date, limit=None
    )

    sales = [b for b in bills if not b.is_return]
    returns = [b for b in bills if b.is_return]

    by_method = {m.value: 0.0 for m in PaymentMethod}
    for bill in bills:
        by_method[bill.payment_method.value] += bill.total

    gross = sum(b.total for b in sales)
    returned = sum(b.total for b in returns)

    return schemas.SalesSummary(
        start_date=start_date,
        end_date=end_date,
        bill_count=len(sales),
        return_count=len(returns),
        gross_sales=round(gross, 2),
        returns_total=round(returned, 2),
        net_sales=round(gross + returned, 2),
        tax_collected=round(sum(b.tax for b in bills), 2),
        by_payment_method={k: round(v, 2) for k, v in by_method.items()},
    )


async def dashboard_stats(store: DocumentStore, today: Optional[date] = None) -> schemas.DashboardStats:
    today = today or datetime.now(pytz.timezone(settings.TIMEZONE)).date()

    bills = await sales_service.list_bills(store, limit=None)

    todays = 0.0
    monthly = 0.0
    for bill in bills:
        day = sales_service.bill_date(bill)
        if day == today:
            todays += bill.total
        if (day.year, day.month) == (today.year, today.month):
            monthly += bill.total

    return schemas.DashboardStats(
        todays_revenue=round(todays, 2),
        monthly_revenue=round(monthly, 2),
        total_bills=len(bills),
        stock=await inventory_service.stock_overview(store),
        credit=await credit_service.ledger_summary(store),
    )


async def low_stock_products(store: DocumentStore, level: Optional[int] = None) -> List[Product]:
    level = settings.REPORT_LOW_STOCK_LEVEL if level is None else level
    products = await product_service.get_products(store)
    return sorted(
        (p for p in products if p.quantity <= level),
        key=lambda p: p.quantity,
    )


# --------------------------------------------------
# Excel exports
# --------------------------------------------------
def to_excel(df: pd.DataFrame, sheet_name: str) -> BytesIO:
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
    buffer.seek(0)
    return buffer


async def bills_frame(
    store: DocumentStore,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> pd.DataFrame:
    bills = await sales_service.list_bills(
        store, start_date=start_date, end_date=end_date, limit=None
    )
    columns = [
        "Bill ID", "Date", "Customer", "Phone", "Payment Method",
        "Items", "Subtotal", "GST %", "Tax", "Total", "Return", "Original Bill",
    ]
    rows = [
        [
            b.bill_id,
            b.date,
            b.customer_name or "-",
            b.customer_phone or "-",
            b.payment_method.value,
            sum(i.quantity for i in b.items),
            b.subtotal,
            b.gst_percentage,
            b.tax,
            b.total,
            "YES" if b.is_return else "NO",
            b.original_bill_id or "",
        ]
        for b in bills
    ]
    return pd.DataFrame(rows, columns=columns)


async def products_frame(store: DocumentStore, only_low_stock: bool = False) -> pd.DataFrame:
    if only_low_stock:
        products = await low_stock_products(store)
    else:
        products = await product_service.get_products(store)

    columns = [
        "Product Code", "Name", "Category", "Selling Price", "Cost Price",
        "MRP", "Quantity", "Dealer", "Size", "Color",
    ]
    rows = [
        [
            p.product_code,
            p.name,
            p.category.name,
            p.selling_price,
            p.cost_price,
            p.mrp_price,
            p.quantity,
            p.dealer_name,
            p.size or "",
            p.color or "",
        ]
        for p in products
    ]
    return pd.DataFrame(rows, columns=columns)


async def credit_transactions_frame(
    store: DocumentStore,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> pd.DataFrame:
    transactions = await credit_service.list_transactions(
        store, start_date=start_date, end_date=end_date
    )
    parties = {p.id: p.name for p in await credit_service.list_parties(store)}

    columns = ["Date", "Party", "Type", "Amount", "Description", "Bill Number"]
    rows = [
        [
            t.date.isoformat(),
            parties.get(t.party_id, t.party_id),
            t.type.value,
            t.amount,
            t.description or "",
            t.bill_number or "",
        ]
        for t in transactions
    ]
    return pd.DataFrame(rows, columns=columns)
