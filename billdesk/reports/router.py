from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from billdesk.database import DocumentStore
from billdesk.dependencies import get_store
from billdesk.reports import schemas, service
from billdesk.stock.products.schemas import Product

router = APIRouter()

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _excel_response(buffer, name: str) -> StreamingResponse:
    filename = f"{name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
    return StreamingResponse(
        buffer,
        media_type=XLSX,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/sales", response_model=schemas.SalesSummary)
async def sales_summary(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    store: DocumentStore = Depends(get_store),
):
    return await service.sales_summary(store, start_date, end_date)


@router.get("/dashboard", response_model=schemas.DashboardStats)
async def dashboard(store: DocumentStore = Depends(get_store)):
    return await service.dashboard_stats(store)


@router.get("/low-stock", response_model=List[Product])
async def low_stock(level: Optional[int] = None, store: DocumentStore = Depends(get_store)):
    return await service.low_stock_products(store, level)


@router.get("/export/bills")
async def export_bills(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    store: DocumentStore = Depends(get_store),
):
    df = await service.bills_frame(store, start_date, end_date)
    return _excel_response(service.to_excel(df, "Sales"), "sales_report")


@router.get("/export/products")
async def export_products(
    low_stock_only: bool = False,
    store: DocumentStore = Depends(get_store),
):
    df = await service.products_frame(store, only_low_stock=low_stock_only)
    return _excel_response(service.to_excel(df, "Products"), "products")


@router.get("/export/credit-transactions")
async def export_credit_transactions(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    store: DocumentStore = Depends(get_store),
):
    df = await service.credit_transactions_frame(store, start_date, end_date)
    return _excel_response(service.to_excel(df, "Credit"), "credit_transactions")
