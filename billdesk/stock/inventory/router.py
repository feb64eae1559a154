from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from billdesk.database import DocumentStore
from billdesk.dependencies import get_store
from billdesk.stock.inventory import schemas, service

router = APIRouter()


@router.get("/", response_model=List[schemas.StockRow])
async def list_stock(
    stock_status: Optional[str] = None,
    category: Optional[str] = None,
    sub_category: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "name",
    store: DocumentStore = Depends(get_store),
):
    return await service.list_stock(
        store,
        status=stock_status,
        category=category,
        sub_category=sub_category,
        search=search,
        sort_by=sort_by,
    )


@router.get("/overview", response_model=schemas.StockOverview)
async def stock_overview(store: DocumentStore = Depends(get_store)):
    return await service.stock_overview(store)


@router.post(
    "/adjustments",
    response_model=schemas.StockTransaction,
    status_code=status.HTTP_201_CREATED,
)
async def create_adjustment(
    adjustment: schemas.StockAdjustmentCreate,
    store: DocumentStore = Depends(get_store),
):
    """
    add / remove move stock by quantity, adjust sets it to quantity.
    """
    return await service.adjust_stock(store, adjustment)


@router.get("/transactions", response_model=List[schemas.StockTransaction])
async def list_transactions(
    product_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    store: DocumentStore = Depends(get_store),
):
    return await service.list_stock_transactions(
        store, product_id=product_id, start_date=start_date, end_date=end_date
    )
