from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from billdesk.stock.products.schemas import CamelModel


class TransactionType(str, Enum):
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


# -------------------------
# Party
# -------------------------
class CreditPartyCreate(CamelModel):
    name: str = Field(min_length=1)
    shop_name: Optional[str] = None
    email: Optional[str] = None
    phone: str = Field(min_length=1)
    address: Optional[str] = None
    initial_balance: float = 0


class CreditParty(CamelModel):
    id: str
    name: str
    shop_name: Optional[str] = None
    email: Optional[str] = None
    phone: str
    address: Optional[str] = None
    initial_balance: float = 0
    balance: float
    join_date: datetime


# -------------------------
# Transaction
# -------------------------
class TransactionCreate(CamelModel):
    type: TransactionType
    amount: float = Field(gt=0)
    description: Optional[str] = None
    bill_number: Optional[str] = None


class Transaction(CamelModel):
    id: str
    party_id: str
    type: TransactionType
    amount: float
    date: datetime
    description: Optional[str] = None
    bill_number: Optional[str] = None


class LedgerSummary(CamelModel):
    total_parties: int
    total_balance: float
    credit_accounts: int
    debit_accounts: int
