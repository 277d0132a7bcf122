from datetime import UTC, date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from church_clerk.auth.roles import TenantScope
from church_clerk.features.member_contributions.repository import (
    MemberListFilters,
    MemberRepository,
)
from church_clerk.models.domain.contribution_domain import ContributionSource

REPO = "church_clerk.features.member_contributions.repository"


@pytest.mark.asyncio
async def test_fetch_contributions_reads_source_table(monkeypatch):
    fetch_all_mock = AsyncMock(
        return_value=[
            {
                "member_id": "m1",
                "amount": Decimal("25.50"),
                "date": datetime(2024, 4, 1, tzinfo=UTC),
                "payment_method": "mobile money",
            }
        ]
    )
    monkeypatch.setattr(f"{REPO}.fetch_all", fetch_all_mock)

    records = await MemberRepository.fetch_contributions(ContributionSource.WELFARE, "m1")

    query, params = fetch_all_mock.await_args.args
    assert "FROM welfare_contributions" in query
    assert params == ("m1",)
    assert records[0].source is ContributionSource.WELFARE
    assert records[0].amount == Decimal("25.50")
    assert records[0].payment_method == "mobile money"


@pytest.mark.asyncio
async def test_fetch_member_applies_church_scope(monkeypatch):
    fetch_one_mock = AsyncMock(return_value=None)
    monkeypatch.setattr(f"{REPO}.fetch_one", fetch_one_mock)

    member = await MemberRepository.fetch_member("m1", TenantScope(church_id="c1"))

    query, params = fetch_one_mock.await_args.args
    assert member is None
    assert "m.church_id = %s" in query
    assert params == ("m1", "c1")


@pytest.mark.asyncio
async def test_fetch_member_expands_relations(monkeypatch):
    now = datetime(2024, 1, 1, tzinfo=UTC)
    monkeypatch.setattr(
        f"{REPO}.fetch_one",
        AsyncMock(
            return_value={
                "id": "m1",
                "member_code": "GBC-000001",
                "first_name": "Kofi",
                "last_name": "Boateng",
                "email": None,
                "phone_number": "0200000000",
                "gender": "male",
                "status": "inactive",
                "church_role": "usher",
                "city": "Accra",
                "date_joined": now,
                "cell_ids": ["cell-1"],
                "group_ids": [],
                "department_ids": [],
                "created_at": now,
                "updated_at": now,
                "church_id": "c1",
                "church_name": "Grace Bible Church",
            }
        ),
    )
    fetch_all_mock = AsyncMock(
        return_value=[{"id": "cell-1", "name": "Dansoman Cell", "role": "host", "status": "active"}]
    )
    monkeypatch.setattr(f"{REPO}.fetch_all", fetch_all_mock)

    member = await MemberRepository.fetch_member("m1", TenantScope())

    assert member.status == "inactive"
    assert member.church.name == "Grace Bible Church"
    assert [cell.name for cell in member.cells] == ["Dansoman Cell"]
    assert member.groups == []
    # Only the cells lookup hits the database
    assert fetch_all_mock.await_count == 1
    assert "FROM cells" in fetch_all_mock.await_args.args[0]


@pytest.mark.asyncio
async def test_count_members_since_start_of_month(monkeypatch):
    fetch_val_mock = AsyncMock(return_value=4)
    monkeypatch.setattr(f"{REPO}.fetch_val", fetch_val_mock)
    since = datetime(2024, 5, 1, tzinfo=UTC)

    total = await MemberRepository.count_members(TenantScope(church_id="c1"), joined_since=since)

    query, params = fetch_val_mock.await_args.args
    assert total == 4
    assert query.startswith("SELECT COUNT(*) AS total FROM members m WHERE TRUE")
    assert query.endswith("AND m.church_id = %s AND m.date_joined >= %s")
    assert params == ("c1", since)


@pytest.mark.asyncio
async def test_count_members_by_status(monkeypatch):
    fetch_val_mock = AsyncMock(return_value=None)
    monkeypatch.setattr(f"{REPO}.fetch_val", fetch_val_mock)

    total = await MemberRepository.count_members(TenantScope(church_id="c1"), status="inactive")

    query, params = fetch_val_mock.await_args.args
    assert total == 0
    assert "m.status = %s" in query
    assert params == ("c1", "inactive")


@pytest.mark.asyncio
async def test_count_members_uses_directory_filters(monkeypatch):
    fetch_val_mock = AsyncMock(return_value=7)
    monkeypatch.setattr(f"{REPO}.fetch_val", fetch_val_mock)
    filters = MemberListFilters(search="ama", status="all", date_to=date(2024, 1, 31))

    total = await MemberRepository.count_members(
        TenantScope(church_id="c1"), status="active", filters=filters
    )

    query, params = fetch_val_mock.await_args.args
    assert total == 7
    # Directory filters replace the status shortcut
    assert "m.status" not in query
    assert query.count("ILIKE %s") == 6
    assert params[0] == "c1"
    assert params[1:7] == ("%ama%",) * 6
    assert params[7] == datetime(2024, 1, 31, 23, 59, 59, 999999)
