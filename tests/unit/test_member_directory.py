import asyncio
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from church_clerk.auth.roles import TenantScope
from church_clerk.db.helpers import DatabaseError
from church_clerk.features.member_contributions.repository import MemberListFilters
from church_clerk.features.member_contributions.service import MemberDirectory
from conftest import CHURCH_A


@pytest.mark.asyncio
async def test_member_kpis_count_each_bucket():
    repository = AsyncMock()

    async def count_members(scope, *, status=None, joined_since=None, filters=None):
        if joined_since is not None:
            return 2
        return {None: 12, "active": 9, "inactive": 3}[status]

    repository.count_members.side_effect = count_members
    directory = MemberDirectory(repository)

    kpi = await directory.get_member_kpis(
        TenantScope(church_id=CHURCH_A), now=datetime(2024, 5, 17, 15, 30, tzinfo=UTC)
    )

    assert kpi.total_members == 12
    assert kpi.current_members == 9
    assert kpi.inactive_members == 3
    assert kpi.new_members_this_month == 2

    calls = [call.kwargs for call in repository.count_members.await_args_list]
    assert {"status": "active"} in calls
    assert {"status": "inactive"} in calls
    assert {"joined_since": datetime(2024, 5, 1, tzinfo=UTC)} in calls
    for call in repository.count_members.await_args_list:
        assert call.args == (TenantScope(church_id=CHURCH_A),)


@pytest.mark.asyncio
async def test_list_members_pages_and_counts_with_same_filters():
    repository = AsyncMock()
    repository.list_members.return_value = []
    repository.count_members.return_value = 23
    directory = MemberDirectory(repository)
    scope = TenantScope(church_id=CHURCH_A)
    filters = MemberListFilters(search="ama", status="active")

    members, page_info = await directory.list_members(scope, filters, page="3", limit="5")

    assert members == []
    repository.list_members.assert_awaited_once_with(scope, filters, 5, 10)
    repository.count_members.assert_awaited_once_with(scope, filters=filters)
    assert page_info.total_pages == 5
    assert page_info.current_page == 3
    assert page_info.prev_page == 2
    assert page_info.next_page == 4


@pytest.mark.asyncio
async def test_failed_count_cancels_member_page_query():
    cancelled = []

    class SlowListRepository:
        async def list_members(self, scope, filters, limit, offset):
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append("list_members")
                raise
            return []

        async def count_members(self, scope, *, filters=None):
            raise DatabaseError("Query failed: statement timeout", operation="fetch_val")

    directory = MemberDirectory(SlowListRepository())

    with pytest.raises(DatabaseError):
        await directory.list_members(TenantScope(church_id=CHURCH_A), MemberListFilters())

    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert cancelled == ["list_members"]
