from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field

from billdesk.stock.products.schemas import CamelModel


class StaffRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    CASHIER = "cashier"
    SALESPERSON = "salesperson"
    INVENTORY = "inventory"
    OTHER = "other"


class StaffStatus(str, Enum):
    ACTIVE = "active"
    ON_LEAVE = "on_leave"
    SUSPENDED = "suspended"
    INACTIVE = "inactive"


class StaffPermissions(CamelModel):
    can_manage_products: bool = False
    can_manage_staff: bool = False
    can_manage_billing: bool = False
    can_view_reports: bool = False
    can_manage_inventory: bool = False


class StaffBase(CamelModel):
    first_name: str = Field(min_length=1)
    last_name: str = ""
    email: str
    phone: str
    role: StaffRole = StaffRole.CASHIER
    status: StaffStatus = StaffStatus.ACTIVE
    salary: float = Field(default=0, ge=0)
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    permissions: StaffPermissions = StaffPermissions()


class StaffCreate(StaffBase):
    pass


class StaffUpdate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[StaffRole] = None
    status: Optional[StaffStatus] = None
    salary: Optional[float] = Field(default=None, ge=0)
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    permissions: Optional[StaffPermissions] = None

    model_config = ConfigDict(extra="forbid")


class StaffMember(StaffBase):
    id: str
    join_date: datetime

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
