import os

# Must be set before church_clerk.config builds its settings singleton
os.environ.setdefault("JWT_SECRET", "church-clerk-test-secret-0123456789abcdef")
os.environ.setdefault("environment", "test")

from datetime import UTC, datetime  # noqa: E402
from decimal import Decimal  # noqa: E402

import jwt  # noqa: E402
import pytest  # noqa: E402

from church_clerk.auth.roles import TenantScope  # noqa: E402
from church_clerk.models.domain.contribution_domain import (  # noqa: E402
    ContributionRecord,
    ContributionSource,
)
from church_clerk.models.domain.member_domain import ChurchRef, Member  # noqa: E402

CHURCH_A = "11111111-1111-1111-1111-111111111111"
CHURCH_B = "22222222-2222-2222-2222-222222222222"
MEMBER_M1 = "aaaaaaaa-0000-0000-0000-000000000001"


def build_member(member_id: str = MEMBER_M1, church_id: str = CHURCH_A, status: str = "active") -> Member:
    now = datetime(2024, 1, 1, tzinfo=UTC)
    return Member(
        id=member_id,
        member_code="GBC-000001",
        first_name="Ama",
        last_name="Mensah",
        phone_number="0240000000",
        status=status,
        church=ChurchRef(id=church_id, name="Grace Bible Church"),
        created_at=now,
        updated_at=now,
    )


def record(source: ContributionSource, amount: str, day: datetime, method: str = "cash"):
    return ContributionRecord(
        source=source,
        member_id=MEMBER_M1,
        amount=Decimal(amount),
        date=day,
        payment_method=method,
    )


class FakeMemberStore:
    """In-memory stand-in for MemberRepository."""

    def __init__(self, members=None, contributions=None):
        self.members: dict[str, Member] = {m.id: m for m in (members or [])}
        self.contributions: dict[ContributionSource, list[ContributionRecord]] = contributions or {}
        self.fetched_sources: list[ContributionSource] = []

    async def fetch_member(self, member_id: str, scope: TenantScope) -> Member | None:
        member = self.members.get(member_id)
        if member is None:
            return None
        if not scope.is_unrestricted and member.church.id != scope.church_id:
            return None
        return member

    async def fetch_contributions(self, source, member_id):
        self.fetched_sources.append(source)
        return [r for r in self.contributions.get(source, []) if r.member_id == member_id]


@pytest.fixture
def m1_store():
    """Member M1: tithes 100 (Jan) and 50 (Mar), welfare 30 (Feb)."""
    return FakeMemberStore(
        members=[build_member()],
        contributions={
            ContributionSource.TITHE: [
                record(ContributionSource.TITHE, "100", datetime(2024, 1, 1, tzinfo=UTC)),
                record(ContributionSource.TITHE, "50", datetime(2024, 3, 1, tzinfo=UTC)),
            ],
            ContributionSource.WELFARE: [
                record(ContributionSource.WELFARE, "30", datetime(2024, 2, 1, tzinfo=UTC)),
            ],
        },
    )


@pytest.fixture
def make_token():
    def _make(role: str = "churchadmin", church: str | None = CHURCH_A, sub: str = "user-123") -> str:
        claims = {"sub": sub, "role": role}
        if church:
            claims["church"] = church
        return jwt.encode(claims, os.environ["JWT_SECRET"], algorithm="HS256")

    return _make


@pytest.fixture
def member_factory():
    return build_member


@pytest.fixture
def record_factory():
    return record


@pytest.fixture
def store_factory():
    return FakeMemberStore
