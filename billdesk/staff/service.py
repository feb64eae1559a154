import uuid
from datetime import datetime
from typing import List, Optional

import pytz
from loguru import logger
from pydantic import ValidationError

from billdesk.config import settings
from billdesk.database import DocumentStore, decode, encode
from billdesk.errors import InvalidUpdate, NotFound
from billdesk.staff import schemas
from billdesk.staff.schemas import StaffMember

STAFF = "staff"


async def create_staff(store: DocumentStore, staff: schemas.StaffCreate) -> StaffMember:
    member = StaffMember(
        id=uuid.uuid4().hex,
        join_date=datetime.now(pytz.timezone(settings.TIMEZONE)),
        **staff.model_dump(),
    )
    await store.set(STAFF, member.id, encode(member))
    logger.info(f"Staff member added: {member.full_name} ({member.role.value})")
    return member


async def list_staff(
    store: DocumentStore,
    role: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "name",
) -> List[StaffMember]:
    filters = []
    if role and role != "all":
        filters.append(("role", "==", role))
    if status and status != "all":
        filters.append(("status", "==", status))

    docs = await store.query(STAFF, filters)
    members = [decode(StaffMember, d, STAFF) for d in docs]

    if search:
        term = search.lower().strip()
        members = [
            m for m in members
            if term in m.full_name.lower() or term in m.email.lower() or term in m.phone
        ]

    sort_keys = {
        "name": lambda m: m.full_name.lower(),
        "role": lambda m: m.role.value,
        "status": lambda m: m.status.value,
        "joinDate": lambda m: m.join_date,
    }
    members.sort(key=sort_keys.get(sort_by, sort_keys["name"]))

    return members


async def get_staff(store: DocumentStore, staff_id: str) -> StaffMember:
    doc = await store.get(STAFF, staff_id)
    if doc is None:
        raise NotFound("Staff member not found")
    return decode(StaffMember, doc, STAFF)


async def update_staff(
    store: DocumentStore,
    staff_id: str,
    staff_update: schemas.StaffUpdate,
) -> StaffMember:
    member = await get_staff(store, staff_id)

    update_data = staff_update.model_dump(exclude_unset=True)
    try:
        updated = StaffMember.model_validate({**member.model_dump(), **update_data})
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise InvalidUpdate(f"Invalid value for: {', '.join(fields)}") from e

    await store.set(STAFF, staff_id, encode(updated))
    return updated


async def delete_staff(store: DocumentStore, staff_id: str):
    if not await store.delete(STAFF, staff_id):
        raise NotFound("Staff member not found")
    logger.info(f"Staff member deleted: {staff_id}")
    return {"message": "Staff member deleted successfully"}
