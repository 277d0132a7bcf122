"""
Repository for members and their contribution records.

Reads only. Every method runs on its own pooled connection so callers can
fan out independent reads with gather_or_cancel.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from church_clerk.auth.roles import TenantScope
from church_clerk.db.helpers import (
    fetch_all,
    fetch_one,
    fetch_val,
    gather_or_cancel,
    with_db_retry,
)
from church_clerk.infrastructure.observability.logging import get_logger
from church_clerk.models.domain.contribution_domain import (
    ContributionRecord,
    ContributionSource,
)
from church_clerk.models.domain.member_domain import (
    ChurchRef,
    Member,
    MemberSummary,
    MinistryRef,
)

logger = get_logger(__name__)


# Table names are fixed here, never taken from input
_CONTRIBUTION_TABLES: dict[ContributionSource, str] = {
    ContributionSource.TITHE: "tithes",
    ContributionSource.WELFARE: "welfare_contributions",
    ContributionSource.SPECIAL_FUND: "special_fund_contributions",
    ContributionSource.CHURCH_PROJECT: "church_project_contributions",
}

_MINISTRY_TABLES = {
    "cells": "cells",
    "groups": "ministry_groups",
    "departments": "departments",
}

_MEMBER_SEARCH_COLUMNS = (
    "m.first_name",
    "m.last_name",
    "m.phone_number",
    "m.email",
    "m.city",
    "m.member_code",
)


@dataclass(slots=True)
class MemberListFilters:
    search: str = ""
    status: str | None = None
    date_from: date | None = None
    date_to: date | None = None


def _scope_clause(scope: TenantScope, column: str = "m.church_id") -> tuple[str, tuple]:
    if scope.is_unrestricted:
        return "", ()
    return f" AND {column} = %s", (scope.church_id,)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_member_filter(scope: TenantScope, filters: MemberListFilters) -> tuple[str, tuple]:
    """
    Build the WHERE clause for the member directory.

    Returns:
        (where_sql, params) where where_sql starts with "WHERE"
    """
    clauses = ["TRUE"]
    params: list = []

    if not scope.is_unrestricted:
        clauses.append("m.church_id = %s")
        params.append(scope.church_id)

    if filters.search:
        pattern = f"%{_escape_like(filters.search)}%"
        clauses.append(
            "(" + " OR ".join(f"{column} ILIKE %s" for column in _MEMBER_SEARCH_COLUMNS) + ")"
        )
        params.extend([pattern] * len(_MEMBER_SEARCH_COLUMNS))

    if filters.status and filters.status != "all":
        clauses.append("m.status = %s")
        params.append(filters.status)

    # Whole calendar days on both ends
    if filters.date_from:
        clauses.append("m.date_joined >= %s")
        params.append(datetime.combine(filters.date_from, datetime.min.time()))

    if filters.date_to:
        clauses.append("m.date_joined <= %s")
        params.append(datetime.combine(filters.date_to, datetime.max.time()))

    return "WHERE " + " AND ".join(clauses), tuple(params)


class MemberRepository:
    @classmethod
    @with_db_retry(max_retries=2, base_delay=0.1)
    async def fetch_member(cls, member_id: str, scope: TenantScope) -> Member | None:
        """
        Load a member with church, cells, groups and departments expanded.

        Members outside `scope` are reported as missing.
        """
        scope_sql, scope_params = _scope_clause(scope)
        query = f"""
            SELECT
                m.id,
                m.member_code,
                m.first_name,
                m.last_name,
                m.email,
                m.phone_number,
                m.gender,
                m.status,
                m.church_role,
                m.city,
                m.date_joined,
                COALESCE(m.cell_ids, '{{}}'::uuid[]) AS cell_ids,
                COALESCE(m.group_ids, '{{}}'::uuid[]) AS group_ids,
                COALESCE(m.department_ids, '{{}}'::uuid[]) AS department_ids,
                m.created_at,
                m.updated_at,
                c.id AS church_id,
                c.name AS church_name
            FROM members m
            JOIN churches c ON c.id = m.church_id
            WHERE m.id = %s{scope_sql}
        """

        row = await fetch_one(query, (member_id, *scope_params))
        if not row:
            return None

        cells, groups, departments = await gather_or_cancel(
            cls._fetch_ministries("cells", row["cell_ids"]),
            cls._fetch_ministries("groups", row["group_ids"]),
            cls._fetch_ministries("departments", row["department_ids"]),
        )

        return Member(
            id=str(row["id"]),
            member_code=row.get("member_code"),
            first_name=row["first_name"],
            last_name=row["last_name"],
            email=row.get("email"),
            phone_number=row["phone_number"],
            gender=row.get("gender"),
            status=row["status"],
            church_role=row.get("church_role"),
            city=row.get("city"),
            date_joined=row.get("date_joined"),
            church=ChurchRef(id=str(row["church_id"]), name=row["church_name"]),
            cells=cells,
            groups=groups,
            departments=departments,
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @classmethod
    async def _fetch_ministries(cls, kind: str, ids: list) -> list[MinistryRef]:
        if not ids:
            return []
        query = f"""
            SELECT id, name, role, status
            FROM {_MINISTRY_TABLES[kind]}
            WHERE id = ANY(%s)
            ORDER BY name
        """
        rows = await fetch_all(query, (list(ids),))
        return [
            MinistryRef(
                id=str(row["id"]),
                name=row["name"],
                role=row.get("role"),
                status=row.get("status"),
            )
            for row in rows
        ]

    @classmethod
    @with_db_retry(max_retries=2, base_delay=0.1)
    async def fetch_contributions(
        cls, source: ContributionSource, member_id: str
    ) -> list[ContributionRecord]:
        """All records of one source for a member, in insertion order."""
        query = f"""
            SELECT member_id, amount, date, payment_method
            FROM {_CONTRIBUTION_TABLES[source]}
            WHERE member_id = %s
            ORDER BY created_at ASC, id ASC
        """

        rows = await fetch_all(query, (member_id,))
        return [
            ContributionRecord(
                source=source,
                member_id=str(row["member_id"]),
                amount=Decimal(row["amount"]),
                date=row["date"],
                payment_method=row.get("payment_method"),
            )
            for row in rows
        ]

    @classmethod
    @with_db_retry(max_retries=2, base_delay=0.1)
    async def list_members(
        cls, scope: TenantScope, filters: MemberListFilters, limit: int, offset: int
    ) -> list[MemberSummary]:
        where_sql, params = build_member_filter(scope, filters)
        query = f"""
            SELECT
                m.id, m.member_code, m.first_name, m.last_name, m.phone_number,
                m.email, m.date_joined, m.created_at, m.church_role, m.city, m.status
            FROM members m
            {where_sql}
            ORDER BY m.created_at DESC
            LIMIT %s OFFSET %s
        """

        rows = await fetch_all(query, (*params, limit, offset))
        return [
            MemberSummary(
                id=str(row["id"]),
                member_code=row.get("member_code"),
                first_name=row["first_name"],
                last_name=row["last_name"],
                phone_number=row["phone_number"],
                email=row.get("email"),
                date_joined=row.get("date_joined"),
                created_at=row["created_at"],
                church_role=row.get("church_role"),
                city=row.get("city"),
                status=row["status"],
            )
            for row in rows
        ]

    @classmethod
    @with_db_retry(max_retries=2, base_delay=0.1)
    async def count_members(
        cls,
        scope: TenantScope,
        *,
        status: str | None = None,
        joined_since: datetime | None = None,
        filters: MemberListFilters | None = None,
    ) -> int:
        where_sql, params = build_member_filter(
            scope, filters or MemberListFilters(status=status)
        )
        extra = []
        if joined_since is not None:
            where_sql += " AND m.date_joined >= %s"
            extra.append(joined_since)

        total = await fetch_val(
            f"SELECT COUNT(*) AS total FROM members m {where_sql}", (*params, *extra)
        )
        return int(total or 0)
