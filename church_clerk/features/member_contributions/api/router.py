"""
Member routes.

Member directory, membership KPIs and the per-member contribution report.
Error bodies use {"message", "error"} to match what the web clients parse.
"""

from datetime import date, datetime

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from ..repository import MemberListFilters
from ..service import (
    ContributionRetrievalError,
    MemberNotFoundError,
    contribution_aggregator,
    member_directory,
)
from church_clerk.auth.roles import (
    CHURCHADMIN,
    FINANCIAL_OFFICER,
    SUPERADMIN,
    SUPPORTADMIN,
    RequestingUser,
    TenantScope,
)
from church_clerk.auth.verify import active_church_scope, require_roles, tenant_scope
from church_clerk.infrastructure.observability.logging import get_logger
from church_clerk.models.api.member_response import (
    ErrorResponse,
    MemberContributionsResponse,
    MemberKPIEnvelope,
    MembersListResponse,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/members", tags=["members"])


def _error(status_code: int, message: str, error: str | None = None) -> JSONResponse:
    body = ErrorResponse(message=message, error=error).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


def _parse_day(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        # Full ISO timestamps are accepted; only the calendar day matters
        return datetime.fromisoformat(value).date()


@router.get("", response_model=MembersListResponse)
async def list_members(
    user: RequestingUser = Depends(
        require_roles(SUPERADMIN, SUPPORTADMIN, CHURCHADMIN, FINANCIAL_OFFICER)
    ),
    scope: TenantScope = Depends(active_church_scope),
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    search: str = Query(default=""),
    member_status: str | None = Query(default=None, alias="status"),
    date_from: str | None = Query(default=None, alias="dateFrom"),
    date_to: str | None = Query(default=None, alias="dateTo"),
):
    """List members of the active church, newest first."""
    try:
        day_from = _parse_day(date_from)
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid dateFrom")
    try:
        day_to = _parse_day(date_to)
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid dateTo")

    filters = MemberListFilters(
        search=search.strip(), status=member_status, date_from=day_from, date_to=day_to
    )

    try:
        members, page_info = await member_directory.list_members(scope, filters, page, limit)
    except Exception as e:
        logger.error("Members could not be fetched", user_id=user.user_id, error=str(e))
        return _error(status.HTTP_400_BAD_REQUEST, "Members could not be fetched", str(e))

    return MembersListResponse.from_page(members, page_info)


@router.get("/stats/kpi", response_model=MemberKPIEnvelope)
async def get_members_kpi(
    user: RequestingUser = Depends(require_roles(SUPERADMIN, CHURCHADMIN, FINANCIAL_OFFICER)),
    scope: TenantScope = Depends(active_church_scope),
):
    try:
        kpi = await member_directory.get_member_kpis(scope)
    except Exception as e:
        logger.error("Member KPI could not be fetched", user_id=user.user_id, error=str(e))
        return _error(status.HTTP_400_BAD_REQUEST, "Member KPI could not be fetched", str(e))

    return MemberKPIEnvelope.from_domain(kpi)


@router.get("/{member_id}/contributions", response_model=MemberContributionsResponse)
async def get_member_contributions(
    member_id: str,
    user: RequestingUser = Depends(require_roles(SUPERADMIN, SUPPORTADMIN, CHURCHADMIN)),
    scope: TenantScope = Depends(tenant_scope),
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
):
    """Member details with contribution totals and a page of contributions."""
    try:
        report = await contribution_aggregator.get_member_contributions(
            member_id, scope, page=page, limit=limit
        )
    except MemberNotFoundError:
        return _error(status.HTTP_404_NOT_FOUND, "Member not found")
    except ContributionRetrievalError as e:
        logger.error(
            "Member could not be retrieved",
            member_id=member_id,
            user_id=user.user_id,
            error=str(e.cause),
        )
        return _error(status.HTTP_400_BAD_REQUEST, "Member could not be retrieved", str(e.cause))
    except Exception as e:
        logger.exception("Unexpected error building member report", member_id=member_id)
        return _error(status.HTTP_400_BAD_REQUEST, "Member could not be retrieved", str(e))

    return MemberContributionsResponse.from_report(report)
