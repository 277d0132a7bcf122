"""
Domain models for member contributions.

Each contribution source stores its own table, but every row is read into
the same ContributionRecord shape tagged with its source, so merging and
sorting never needs to know which table a record came from.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from church_clerk.models.domain.member_domain import Member


class ContributionSource(StrEnum):
    """Contribution sources; the value is the label shown to users."""

    TITHE = "Tithe"
    WELFARE = "Welfare"
    SPECIAL_FUND = "Special Fund"
    CHURCH_PROJECT = "Church Project"


# Order used when concatenating sources before the date sort
CONTRIBUTION_SOURCES: tuple[ContributionSource, ...] = (
    ContributionSource.TITHE,
    ContributionSource.WELFARE,
    ContributionSource.SPECIAL_FUND,
    ContributionSource.CHURCH_PROJECT,
)


@dataclass(slots=True)
class ContributionRecord:
    """A single tithe/welfare/special fund/church project payment by a member."""

    source: ContributionSource
    member_id: str
    amount: Decimal
    date: datetime
    payment_method: str | None


@dataclass(slots=True)
class UnifiedContribution:
    type: ContributionSource
    amount: Decimal
    date: datetime
    payment_method: str | None


@dataclass(slots=True)
class ContributionTotals:
    total_tithe: Decimal
    total_welfare: Decimal
    total_special_fund: Decimal
    total_church_project: Decimal
    total_contributions: Decimal


@dataclass(slots=True)
class PageInfo:
    total_items: int
    total_pages: int
    current_page: int
    has_prev: bool
    has_next: bool
    prev_page: int | None
    next_page: int | None
    limit: int


@dataclass(slots=True)
class MemberContributionReport:
    member: Member
    member_status: str
    totals: ContributionTotals
    contributions: list[UnifiedContribution]
    pagination: PageInfo
