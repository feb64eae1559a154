import uuid
from datetime import date, datetime
from typing import List, Optional

import pytz
from loguru import logger

from billdesk.config import settings
from billdesk.credit import schemas
from billdesk.credit.schemas import CreditParty, Transaction, TransactionType
from billdesk.database import DocumentStore, decode, encode
from billdesk.errors import NotFound

CREDIT_PARTIES = "credit-parties"
CREDIT_TRANSACTIONS = "credit-transactions"


def _now() -> datetime:
    return datetime.now(pytz.timezone(settings.TIMEZONE))


def balance_change(transaction_type: TransactionType, amount: float) -> float:
    return amount if transaction_type == TransactionType.CREDIT else -amount


# -------------------------
# Parties
# -------------------------
async def create_party(store: DocumentStore, party: schemas.CreditPartyCreate) -> CreditParty:
    new_party = CreditParty(
        id=uuid.uuid4().hex,
        name=party.name.strip(),
        shop_name=party.shop_name,
        email=party.email,
        phone=party.phone.strip(),
        address=party.address,
        initial_balance=party.initial_balance,
        balance=party.initial_balance,
        join_date=_now(),
    )
    await store.set(CREDIT_PARTIES, new_party.id, encode(new_party))
    logger.info(f"Credit party created: {new_party.name} ({new_party.id})")
    return new_party


async def list_parties(store: DocumentStore, search: Optional[str] = None) -> List[CreditParty]:
    docs = await store.query(CREDIT_PARTIES, order_by="name")
    parties = [decode(CreditParty, d, CREDIT_PARTIES) for d in docs]

    if search:
        term = search.lower().strip()
        parties = [
            p for p in parties
            if term in p.name.lower()
            or term in p.phone
            or (p.shop_name and term in p.shop_name.lower())
        ]

    return parties


async def get_party(store: DocumentStore, party_id: str) -> CreditParty:
    doc = await store.get(CREDIT_PARTIES, party_id)
    if doc is None:
        raise NotFound("Credit party not found")
    return decode(CreditParty, doc, CREDIT_PARTIES)


# -------------------------
# Transactions
# -------------------------
async def add_transaction(
    store: DocumentStore,
    party_id: str,
    data: schemas.TransactionCreate,
) -> Transaction:
    """
    Record a CREDIT or DEBIT and move the party balance by the same amount.
    """
    party = await get_party(store, party_id)

    transaction = Transaction(
        id=uuid.uuid4().hex,
        party_id=party_id,
        type=data.type,
        amount=data.amount,
        date=_now(),
        description=data.description,
        bill_number=data.bill_number,
    )
    await store.set(CREDIT_TRANSACTIONS, transaction.id, encode(transaction))

    new_balance = round(party.balance + balance_change(data.type, data.amount), 2)
    await store.update(CREDIT_PARTIES, party_id, {"balance": new_balance})

    logger.info(
        f"{data.type.value} of {data.amount} for party {party_id}, balance {party.balance} -> {new_balance}"
    )

    return transaction


async def list_transactions(
    store: DocumentStore,
    party_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[Transaction]:
    filters = [("partyId", "==", party_id)] if party_id else []
    docs = await store.query(CREDIT_TRANSACTIONS, filters, order_by="date", descending=True)
    transactions = [decode(Transaction, d, CREDIT_TRANSACTIONS) for d in docs]

    if start_date:
        transactions = [t for t in transactions if t.date.date() >= start_date]
    if end_date:
        transactions = [t for t in transactions if t.date.date() <= end_date]

    return transactions


async def ledger_summary(store: DocumentStore) -> schemas.LedgerSummary:
    parties = await list_parties(store)

    return schemas.LedgerSummary(
        total_parties=len(parties),
        total_balance=round(sum(p.balance for p in parties), 2),
        credit_accounts=len([p for p in parties if p.balance > 0]),
        debit_accounts=len([p for p in parties if p.balance < 0]),
    )
