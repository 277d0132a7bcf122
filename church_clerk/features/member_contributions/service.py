"""
Member contribution aggregation.

Builds the member detail report: the member, exact per-source totals and
one page of every tithe, welfare, special fund and church project payment
merged into a single newest-first list.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, Protocol

from .pagination import (
    DEFAULT_PAGE,
    build_page_info,
    coerce_positive_int,
    offset_for,
    paginate,
)
from .repository import MemberListFilters, MemberRepository
from church_clerk.auth.roles import TenantScope
from church_clerk.config import settings
from church_clerk.db.helpers import gather_or_cancel
from church_clerk.infrastructure.observability.logging import get_logger
from church_clerk.models.domain.contribution_domain import (
    CONTRIBUTION_SOURCES,
    ContributionRecord,
    ContributionSource,
    ContributionTotals,
    MemberContributionReport,
    PageInfo,
    UnifiedContribution,
)
from church_clerk.models.domain.member_domain import Member, MemberKPI, MemberSummary

logger = get_logger(__name__)

_ZERO = Decimal("0")


class MemberNotFoundError(Exception):
    """Member does not exist or belongs to a church outside the caller's scope."""

    def __init__(self, member_id: str):
        super().__init__("Member not found")
        self.member_id = member_id


class ContributionRetrievalError(Exception):
    """Member or contribution lookup failed in storage."""

    def __init__(self, message: str, cause: BaseException):
        super().__init__(message)
        self.cause = cause


class MemberStore(Protocol):
    async def fetch_member(self, member_id: str, scope: TenantScope) -> Member | None: ...

    async def fetch_contributions(
        self, source: ContributionSource, member_id: str
    ) -> list[ContributionRecord]: ...


def compute_totals(
    records_by_source: Mapping[ContributionSource, list[ContributionRecord]],
) -> ContributionTotals:
    def source_total(source: ContributionSource) -> Decimal:
        return sum((record.amount for record in records_by_source.get(source, [])), _ZERO)

    total_tithe = source_total(ContributionSource.TITHE)
    total_welfare = source_total(ContributionSource.WELFARE)
    total_special_fund = source_total(ContributionSource.SPECIAL_FUND)
    total_church_project = source_total(ContributionSource.CHURCH_PROJECT)

    return ContributionTotals(
        total_tithe=total_tithe,
        total_welfare=total_welfare,
        total_special_fund=total_special_fund,
        total_church_project=total_church_project,
        total_contributions=total_tithe + total_welfare + total_special_fund + total_church_project,
    )


def normalize(record: ContributionRecord) -> UnifiedContribution:
    return UnifiedContribution(
        type=record.source,
        amount=record.amount,
        date=record.date,
        payment_method=record.payment_method,
    )


def merge_contributions(
    records_by_source: Mapping[ContributionSource, Iterable[ContributionRecord]],
) -> list[UnifiedContribution]:
    """
    Concatenate every source in CONTRIBUTION_SOURCES order, newest first.

    sorted() is stable with reverse=True, so records sharing a date keep
    their source-then-storage order.
    """
    unified = [
        normalize(record)
        for source in CONTRIBUTION_SOURCES
        for record in records_by_source.get(source, ())
    ]
    return sorted(unified, key=lambda contribution: contribution.date, reverse=True)


class ContributionAggregator:
    def __init__(self, repository: MemberStore | None = None):
        self._repository = repository or MemberRepository

    async def get_member_contributions(
        self,
        member_id: str,
        scope: TenantScope,
        page: Any = None,
        limit: Any = None,
    ) -> MemberContributionReport:
        """
        Build the contribution report for one member.

        Args:
            member_id: Member to report on
            scope: Tenant scope of the caller (see tenant_scope_for)
            page: Requested page, coerced (default 1, floored at 1)
            limit: Page size, coerced (default DEFAULT_PAGE_LIMIT, floored at 1)

        Raises:
            MemberNotFoundError: member missing or outside `scope`
            ContributionRetrievalError: any lookup failure; no partial report
        """
        page_num = coerce_positive_int(page, DEFAULT_PAGE)
        limit_num = coerce_positive_int(limit, settings.DEFAULT_PAGE_LIMIT)

        try:
            member = await self._repository.fetch_member(member_id, scope)
        except Exception as e:
            logger.error("Member lookup failed", member_id=member_id, error=str(e))
            raise ContributionRetrievalError("Member could not be retrieved", cause=e) from e

        if member is None:
            logger.info(
                "Member not found in scope",
                member_id=member_id,
                church_id=scope.church_id,
            )
            raise MemberNotFoundError(member_id)

        try:
            records_by_source = await self._fetch_all_sources(member_id)
        except Exception as e:
            logger.error("Contribution lookup failed", member_id=member_id, error=str(e))
            raise ContributionRetrievalError("Member could not be retrieved", cause=e) from e

        totals = compute_totals(records_by_source)
        contributions, pagination = paginate(
            merge_contributions(records_by_source), page_num, limit_num
        )

        logger.info(
            "Member contributions aggregated",
            member_id=member_id,
            total_items=pagination.total_items,
            page=page_num,
            limit=limit_num,
        )

        return MemberContributionReport(
            member=member,
            member_status=member.status,
            totals=totals,
            contributions=contributions,
            pagination=pagination,
        )

    async def _fetch_all_sources(
        self, member_id: str
    ) -> dict[ContributionSource, list[ContributionRecord]]:
        results = await gather_or_cancel(
            *(
                self._repository.fetch_contributions(source, member_id)
                for source in CONTRIBUTION_SOURCES
            )
        )
        return dict(zip(CONTRIBUTION_SOURCES, results, strict=True))


class MemberDirectory:
    """Member listing and membership KPIs for a church."""

    def __init__(self, repository=None):
        self._repository = repository or MemberRepository

    async def list_members(
        self,
        scope: TenantScope,
        filters: MemberListFilters,
        page: Any = None,
        limit: Any = None,
    ) -> tuple[list[MemberSummary], PageInfo]:
        page_num = coerce_positive_int(page, DEFAULT_PAGE)
        limit_num = coerce_positive_int(limit, settings.DEFAULT_PAGE_LIMIT)

        members, total = await gather_or_cancel(
            self._repository.list_members(scope, filters, limit_num, offset_for(page_num, limit_num)),
            self._repository.count_members(scope, filters=filters),
        )
        return members, build_page_info(total, page_num, limit_num)

    async def get_member_kpis(self, scope: TenantScope, now: datetime | None = None) -> MemberKPI:
        now = now or datetime.now(UTC)
        start_of_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

        total, active, inactive, new_this_month = await gather_or_cancel(
            self._repository.count_members(scope),
            self._repository.count_members(scope, status="active"),
            self._repository.count_members(scope, status="inactive"),
            self._repository.count_members(scope, joined_since=start_of_month),
        )
        return MemberKPI(
            total_members=total,
            current_members=active,
            inactive_members=inactive,
            new_members_this_month=new_this_month,
        )


contribution_aggregator = ContributionAggregator()
member_directory = MemberDirectory()
