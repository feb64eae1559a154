from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from billdesk.credit import schemas, service
from billdesk.database import DocumentStore
from billdesk.dependencies import get_store

router = APIRouter()


@router.post("/parties", response_model=schemas.CreditParty, status_code=status.HTTP_201_CREATED)
async def create_party(party: schemas.CreditPartyCreate, store: DocumentStore = Depends(get_store)):
    return await service.create_party(store, party)


@router.get("/parties", response_model=List[schemas.CreditParty])
async def list_parties(search: Optional[str] = None, store: DocumentStore = Depends(get_store)):
    return await service.list_parties(store, search)


@router.get("/summary", response_model=schemas.LedgerSummary)
async def ledger_summary(store: DocumentStore = Depends(get_store)):
    return await service.ledger_summary(store)


@router.get("/parties/{party_id}", response_model=schemas.CreditParty)
async def get_party(party_id: str, store: DocumentStore = Depends(get_store)):
    return await service.get_party(store, party_id)


@router.post(
    "/parties/{party_id}/transactions",
    response_model=schemas.Transaction,
    status_code=status.HTTP_201_CREATED,
)
async def add_transaction(
    party_id: str,
    data: schemas.TransactionCreate,
    store: DocumentStore = Depends(get_store),
):
    return await service.add_transaction(store, party_id, data)


@router.get("/parties/{party_id}/transactions", response_model=List[schemas.Transaction])
async def list_party_transactions(party_id: str, store: DocumentStore = Depends(get_store)):
    await service.get_party(store, party_id)
    return await service.list_transactions(store, party_id=party_id)


@router.get("/transactions", response_model=List[schemas.Transaction])
async def list_transactions(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    store: DocumentStore = Depends(get_store),
):
    return await service.list_transactions(store, start_date=start_date, end_date=end_date)
