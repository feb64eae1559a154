from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from billdesk.stock.products.schemas import CamelModel


class StockActionType(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    ADJUST = "adjust"    # set an absolute count


class StockAdjustmentCreate(CamelModel):
    product_id: str
    action_type: StockActionType
    quantity: int = Field(ge=0)
    reason: Optional[str] = None
    performed_by: str = "system"


class StockTransaction(CamelModel):
    id: str
    product_id: str
    product_name: str
    product_code: str
    quantity: int
    previous_quantity: int
    new_quantity: int
    action_type: StockActionType
    reason: Optional[str] = None
    timestamp: datetime
    performed_by: str


class StockRow(CamelModel):
    product_id: str
    product_code: str
    product_name: str
    category: str
    quantity: int
    status: str    # out / low / normal


class StockOverview(CamelModel):
    total_products: int
    in_stock: int
    low_stock: int
    out_of_stock: int
    low_stock_threshold: int
