from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, computed_field

MemberStatus = Literal["active", "inactive", "visitor", "former"]


class ChurchRef(BaseModel):
    """Church a member belongs to (expanded for display)."""

    id: str
    name: str


class MinistryRef(BaseModel):
    """Cell, group or department a member is part of."""

    id: str
    name: str
    role: str | None = None
    status: str | None = None


class Member(BaseModel):
    """Member with church and ministry relations expanded."""

    model_config = ConfigDict(extra="ignore")

    id: str
    member_code: str | None = None
    first_name: str
    last_name: str
    email: str | None = None
    phone_number: str
    gender: Literal["male", "female"] | None = None
    status: MemberStatus = "active"
    church_role: str | None = None
    city: str | None = None
    date_joined: datetime | None = None

    church: ChurchRef
    cells: list[MinistryRef] = []
    groups: list[MinistryRef] = []
    departments: list[MinistryRef] = []

    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class MemberSummary(BaseModel):
    """Row of the member directory listing."""

    id: str
    member_code: str | None = None
    first_name: str
    last_name: str
    phone_number: str
    email: str | None = None
    date_joined: datetime | None = None
    created_at: datetime
    church_role: str | None = None
    city: str | None = None
    status: MemberStatus = "active"


class MemberKPI(BaseModel):
    total_members: int
    current_members: int
    inactive_members: int
    new_members_this_month: int
