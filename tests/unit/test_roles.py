import os

import jwt
import pytest
from fastapi import HTTPException

from church_clerk.auth.roles import (
    ChurchAccessDeniedError,
    MissingChurchContextError,
    RequestingUser,
    TenantScope,
    active_church_scope_for,
    effective_role,
    normalize_role,
    tenant_scope_for,
)
from church_clerk.auth.verify import verify_jwt


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("super_admin", "superadmin"),
        ("Support_Admin", "supportadmin"),
        ("  ChurchAdmin ", "churchadmin"),
        (None, ""),
    ],
)
def test_normalize_role(raw, expected):
    assert normalize_role(raw) == expected


def test_support_admin_on_system_admin_app_acts_as_superadmin():
    assert effective_role("supportadmin", "System-Admin") == "superadmin"
    assert effective_role("supportadmin", None) == "supportadmin"
    assert effective_role("churchadmin", "system-admin") == "churchadmin"


def test_system_roles_are_unrestricted():
    scope = tenant_scope_for(RequestingUser(user_id="u1", role="super_admin", church_id="c1"))

    assert scope.is_unrestricted


def test_church_roles_are_scoped_to_their_church():
    scope = tenant_scope_for(RequestingUser(user_id="u1", role="churchadmin", church_id="c1"))

    assert scope.church_id == "c1"
    assert not scope.is_unrestricted


def test_church_role_without_church_has_no_scope():
    with pytest.raises(MissingChurchContextError):
        tenant_scope_for(RequestingUser(user_id="u1", role="financialofficer"))


def test_active_church_defaults_to_token_church():
    user = RequestingUser(user_id="u1", role="superadmin", church_id="c1")

    assert active_church_scope_for(user) == TenantScope(church_id="c1")
    assert active_church_scope_for(user, "  ") == TenantScope(church_id="c1")


def test_superadmin_can_switch_active_church():
    user = RequestingUser(user_id="u1", role="super_admin", church_id="c1")

    scope = active_church_scope_for(user, "c2")

    assert scope.church_id == "c2"
    assert not scope.is_unrestricted


@pytest.mark.parametrize("role", ["supportadmin", "churchadmin", "financialofficer"])
def test_other_roles_cannot_switch_church(role):
    user = RequestingUser(user_id="u1", role=role, church_id="c1")

    assert active_church_scope_for(user, "c1").church_id == "c1"
    with pytest.raises(ChurchAccessDeniedError):
        active_church_scope_for(user, "c2")


def test_active_church_needs_some_church():
    with pytest.raises(MissingChurchContextError):
        active_church_scope_for(RequestingUser(user_id="u1", role="superadmin"))


def test_verify_jwt_round_trip():
    token = jwt.encode({"sub": "u1", "role": "churchadmin"}, os.environ["JWT_SECRET"], algorithm="HS256")

    claims = verify_jwt(token)

    assert claims["sub"] == "u1"


def test_verify_jwt_rejects_wrong_secret():
    token = jwt.encode({"sub": "u1"}, "another-secret", algorithm="HS256")

    with pytest.raises(HTTPException) as exc_info:
        verify_jwt(token)

    assert exc_info.value.status_code == 401
