# church_clerk/models/api/member_response.py
"""
API response models for member endpoints.

Keys are camelCase on the wire to match what the admin and member
frontends already consume.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from church_clerk.models.domain.contribution_domain import (
    ContributionTotals,
    MemberContributionReport,
    PageInfo,
    UnifiedContribution,
)
from church_clerk.models.domain.member_domain import Member, MemberKPI, MemberSummary

# Totals are computed exactly as Decimal; clients get plain JSON numbers
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChurchRefResponse(CamelModel):
    id: str
    name: str


class MinistryRefResponse(CamelModel):
    id: str
    name: str
    role: str | None = None
    status: str | None = None


class MemberResponse(CamelModel):
    id: str
    member_code: str | None
    first_name: str
    last_name: str
    full_name: str
    email: str | None
    phone_number: str
    gender: str | None
    status: str
    church_role: str | None
    city: str | None
    date_joined: datetime | None
    church: ChurchRefResponse
    cell: list[MinistryRefResponse]
    group: list[MinistryRefResponse]
    department: list[MinistryRefResponse]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, member: Member) -> "MemberResponse":
        return cls(
            id=member.id,
            member_code=member.member_code,
            first_name=member.first_name,
            last_name=member.last_name,
            full_name=member.full_name,
            email=member.email,
            phone_number=member.phone_number,
            gender=member.gender,
            status=member.status,
            church_role=member.church_role,
            city=member.city,
            date_joined=member.date_joined,
            church=ChurchRefResponse(id=member.church.id, name=member.church.name),
            cell=[MinistryRefResponse(**ref.model_dump()) for ref in member.cells],
            group=[MinistryRefResponse(**ref.model_dump()) for ref in member.groups],
            department=[MinistryRefResponse(**ref.model_dump()) for ref in member.departments],
            created_at=member.created_at,
            updated_at=member.updated_at,
        )


class ContributionTotalsResponse(CamelModel):
    total_tithe: Money
    total_welfare: Money
    total_special_fund: Money
    total_church_project: Money
    total_contributions: Money

    @classmethod
    def from_domain(cls, totals: ContributionTotals) -> "ContributionTotalsResponse":
        return cls(
            total_tithe=totals.total_tithe,
            total_welfare=totals.total_welfare,
            total_special_fund=totals.total_special_fund,
            total_church_project=totals.total_church_project,
            total_contributions=totals.total_contributions,
        )


class ContributionResponse(CamelModel):
    type: str
    amount: Money
    date: datetime
    payment_method: str | None

    @classmethod
    def from_domain(cls, contribution: UnifiedContribution) -> "ContributionResponse":
        return cls(
            type=str(contribution.type),
            amount=contribution.amount,
            date=contribution.date,
            payment_method=contribution.payment_method,
        )


class PaginationResponse(CamelModel):
    total_items: int
    total_pages: int
    current_page: int
    has_prev: bool
    has_next: bool
    prev_page: int | None
    next_page: int | None
    limit: int

    @classmethod
    def from_domain(cls, page_info: PageInfo) -> "PaginationResponse":
        return cls(
            total_items=page_info.total_items,
            total_pages=page_info.total_pages,
            current_page=page_info.current_page,
            has_prev=page_info.has_prev,
            has_next=page_info.has_next,
            prev_page=page_info.prev_page,
            next_page=page_info.next_page,
            limit=page_info.limit,
        )


class MemberContributionsResponse(CamelModel):
    """Response for GET /members/{member_id}/contributions"""

    message: str = "Member retrieved successfully"
    member: MemberResponse
    member_status: str
    totals: ContributionTotalsResponse
    contributions: list[ContributionResponse]
    pagination: PaginationResponse

    @classmethod
    def from_report(cls, report: MemberContributionReport) -> "MemberContributionsResponse":
        return cls(
            member=MemberResponse.from_domain(report.member),
            member_status=report.member_status,
            totals=ContributionTotalsResponse.from_domain(report.totals),
            contributions=[ContributionResponse.from_domain(c) for c in report.contributions],
            pagination=PaginationResponse.from_domain(report.pagination),
        )


class MemberListPagination(CamelModel):
    """Directory pagination; the web clients read totalResult here."""

    total_result: int
    total_pages: int
    current_page: int
    has_prev: bool
    has_next: bool
    prev_page: int | None
    next_page: int | None


class MemberSummaryResponse(CamelModel):
    id: str
    member_code: str | None
    first_name: str
    last_name: str
    phone_number: str
    email: str | None
    date_joined: datetime | None
    created_at: datetime
    church_role: str | None
    city: str | None
    status: str


class MembersListResponse(CamelModel):
    """Response for GET /members"""

    message: str
    pagination: MemberListPagination
    count: int
    members: list[MemberSummaryResponse]

    @classmethod
    def from_page(
        cls, members: list[MemberSummary], page_info: PageInfo
    ) -> "MembersListResponse":
        return cls(
            message="members retrieved successfully" if members else "No members found.",
            pagination=MemberListPagination(
                total_result=page_info.total_items,
                total_pages=page_info.total_pages,
                current_page=page_info.current_page,
                has_prev=page_info.has_prev,
                has_next=page_info.has_next,
                prev_page=page_info.prev_page,
                next_page=page_info.next_page,
            ),
            count=len(members),
            members=[MemberSummaryResponse(**member.model_dump()) for member in members],
        )


class MemberKPIResponse(CamelModel):
    total_members: int
    current_members: int
    inactive_members: int
    new_members_this_month: int


class MemberKPIEnvelope(CamelModel):
    """Response for GET /members/stats/kpi"""

    message: str = "Member KPI fetched successfully"
    member_kpi: MemberKPIResponse = Field(..., alias="memberKPI")

    @classmethod
    def from_domain(cls, kpi: MemberKPI) -> "MemberKPIEnvelope":
        return cls(member_kpi=MemberKPIResponse(**kpi.model_dump()))


class ErrorResponse(BaseModel):
    message: str
    error: Any | None = None
