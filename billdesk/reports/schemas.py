from datetime import date
from typing import Dict, Optional

from billdesk.credit.schemas import LedgerSummary
from billdesk.stock.inventory.schemas import StockOverview
from billdesk.stock.products.schemas import CamelModel


class SalesSummary(CamelModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    bill_count: int
    return_count: int
    gross_sales: float      # sale bills only
    returns_total: float    # <= 0
    net_sales: float
    tax_collected: float
    by_payment_method: Dict[str, float]


class DashboardStats(CamelModel):
    todays_revenue: float
    monthly_revenue: float
    total_bills: int
    stock: StockOverview
    credit: LedgerSummary
