from typing import List, Optional

from fastapi import APIRouter, Depends, status

from billdesk.database import DocumentStore
from billdesk.dependencies import get_store
from billdesk.staff import schemas, service

router = APIRouter()


@router.post("/", response_model=schemas.StaffMember, status_code=status.HTTP_201_CREATED)
async def create_staff(staff: schemas.StaffCreate, store: DocumentStore = Depends(get_store)):
    return await service.create_staff(store, staff)


@router.get("/", response_model=List[schemas.StaffMember])
async def list_staff(
    role: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "name",
    store: DocumentStore = Depends(get_store),
):
    return await service.list_staff(store, role=role, status=status, search=search, sort_by=sort_by)


@router.get("/{staff_id}", response_model=schemas.StaffMember)
async def read_staff(staff_id: str, store: DocumentStore = Depends(get_store)):
    return await service.get_staff(store, staff_id)


@router.put("/{staff_id}", response_model=schemas.StaffMember)
async def update_staff(
    staff_id: str,
    staff_update: schemas.StaffUpdate,
    store: DocumentStore = Depends(get_store),
):
    return await service.update_staff(store, staff_id, staff_update)


@router.delete("/{staff_id}")
async def delete_staff(staff_id: str, store: DocumentStore = Depends(get_store)):
    return await service.delete_staff(store, staff_id)
