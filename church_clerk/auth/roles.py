"""
Role names, role normalization and tenant scoping.

System roles operate across every church; church roles are bound to the
church carried in their token. Reads that must respect tenant isolation
take a TenantScope built here instead of looking at the caller themselves.
"""

from dataclasses import dataclass

SUPERADMIN = "superadmin"
SUPPORTADMIN = "supportadmin"
CHURCHADMIN = "churchadmin"
FINANCIAL_OFFICER = "financialofficer"

SYSTEM_ROLES = frozenset({SUPERADMIN, SUPPORTADMIN})

_ROLE_ALIASES = {
    "super_admin": SUPERADMIN,
    "support_admin": SUPPORTADMIN,
}

# Header sent by the system-admin frontend
SYSTEM_ADMIN_CLIENT_APP = "system-admin"


def normalize_role(role: str | None) -> str:
    value = str(role or "").strip().lower()
    return _ROLE_ALIASES.get(value, value)


def effective_role(role: str | None, client_app: str | None = None) -> str:
    """
    Role used for route gating.

    Support admins working from the system-admin frontend get superadmin
    access for that request.
    """
    normalized = normalize_role(role)
    if normalized == SUPPORTADMIN and (client_app or "").strip().lower() == SYSTEM_ADMIN_CLIENT_APP:
        return SUPERADMIN
    return normalized


@dataclass(frozen=True, slots=True)
class RequestingUser:
    user_id: str
    role: str
    church_id: str | None = None


@dataclass(frozen=True, slots=True)
class TenantScope:
    """Which church a read is restricted to. church_id=None means every church."""

    church_id: str | None = None

    @property
    def is_unrestricted(self) -> bool:
        return self.church_id is None


class MissingChurchContextError(Exception):
    """A church-bound caller has no church to scope reads to."""


class ChurchAccessDeniedError(Exception):
    """Caller asked for a church other than their own without the right to."""


def tenant_scope_for(user: RequestingUser) -> TenantScope:
    """Build the tenant scope for a caller."""
    if normalize_role(user.role) in SYSTEM_ROLES:
        return TenantScope()
    if not user.church_id:
        raise MissingChurchContextError(f"User {user.user_id} has no church")
    return TenantScope(church_id=user.church_id)


def active_church_scope_for(
    user: RequestingUser, requested_church: str | None = None
) -> TenantScope:
    """
    Scope church-level listings to the church the caller is working in.

    The requested church (X-Active-Church) wins over the token's church.
    Only superadmins may switch to a church that is not their own. Unlike
    tenant_scope_for, the result is never unrestricted.
    """
    requested = (requested_church or "").strip() or None
    church_id = requested or user.church_id
    if not church_id:
        raise MissingChurchContextError(f"User {user.user_id} has no active church")

    if normalize_role(user.role) != SUPERADMIN and church_id != user.church_id:
        raise ChurchAccessDeniedError(f"User {user.user_id} cannot access church {church_id}")

    return TenantScope(church_id=church_id)
