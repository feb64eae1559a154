from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from billdesk.stock.products.schemas import CamelModel


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    UPI = "upi"


# ---------- Cart ----------
class CartLine(CamelModel):
    product_code: str
    product_id: str
    product_name: str
    price: float
    quantity: int = 1

    @computed_field(alias="totalPrice")
    @property
    def total_price(self) -> float:
        return self.quantity * self.price


class CartTotals(BaseModel):
    subtotal: float = 0
    tax: float = 0
    total: float = 0


class CartOut(CamelModel):
    terminal_id: str
    items: List[CartLine] = []
    gst_percentage: float
    totals: CartTotals
    warning: Optional[str] = None


class ScanRequest(CamelModel):
    product_code: str = Field(min_length=1)


class AddProductRequest(CamelModel):
    product_id: str


class QuantityDelta(BaseModel):
    delta: int


class QuantitySet(BaseModel):
    quantity: int


class GstUpdate(CamelModel):
    gst_percentage: float


class CustomerInfo(CamelModel):
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None


class CheckoutRequest(CustomerInfo):
    payment_method: PaymentMethod = PaymentMethod.CASH


# ---------- Bill ----------
class BillItem(CamelModel):
    product_code: str
    product_name: str
    quantity: int
    price: float
    total_price: float

    model_config = ConfigDict(frozen=True)


class Bill(CamelModel):
    bill_id: str
    date: str
    items: List[BillItem]
    subtotal: float
    tax: float
    total: float
    # older records may lack the rate
    gst_percentage: Optional[float] = None
    payment_method: PaymentMethod
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    is_return: bool = False
    original_bill_id: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class CheckoutOut(CamelModel):
    bill: Bill
    stock_updated: bool
    failed_codes: List[str] = []
    message: str


class ReturnRequest(CamelModel):
    # productCode -> quantity to return
    quantities: Dict[str, int]


class StockItem(CamelModel):
    product_code: str
    quantity: int
