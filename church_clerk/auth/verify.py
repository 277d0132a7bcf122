"""
verify.py
---------
Purpose:
    JWT verification for tokens issued by the Church Clerk login service.

Notes:
    - HS256 tokens signed with JWT_SECRET.
    - Token is read from the Authorization bearer header, falling back to
      the auth cookie set by the web frontends.
    - Provides `auth_dependency`, `current_user`, `require_roles`,
      `tenant_scope` and `active_church_scope` for protected routes.
"""

import jwt
from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

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
from church_clerk.config import settings
from church_clerk.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

_security = HTTPBearer(auto_error=False)

PERMISSION_DENIED_MESSAGE = "You do not have permission to perform this action"
CHURCH_CONTEXT_MISSING_MESSAGE = "Church context not found"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def verify_jwt(token: str) -> dict:
    if not settings.JWT_SECRET:
        logger.error("JWT_SECRET is not configured")
        raise _unauthorized("Authentication is not configured")

    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_exp": True, "require": ["sub"]},
        )
    except jwt.PyJWTError as e:
        raise _unauthorized(f"Invalid authentication token: {e}") from e


def auth_dependency(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
) -> dict:
    token = credentials.credentials if credentials else request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not token:
        raise _unauthorized("Not authorized, token missing")
    return verify_jwt(token)


def current_user(claims: dict = Depends(auth_dependency)) -> RequestingUser:
    church = claims.get("church")
    return RequestingUser(
        user_id=str(claims["sub"]),
        role=normalize_role(claims.get("role")),
        church_id=str(church) if church else None,
    )


def require_roles(*roles: str):
    """
    Build a dependency that only lets the given roles through.

    Usage:
        @router.get("/members", dependencies=[Depends(require_roles("churchadmin"))])
    """
    allowed = {normalize_role(role) for role in roles}

    def _dependency(
        user: RequestingUser = Depends(current_user),
        x_client_app: str | None = Header(default=None),
    ) -> RequestingUser:
        if effective_role(user.role, x_client_app) not in allowed:
            logger.info("Role not permitted", user_id=user.user_id, role=user.role)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=PERMISSION_DENIED_MESSAGE)
        return user

    return _dependency


def tenant_scope(user: RequestingUser = Depends(current_user)) -> TenantScope:
    try:
        return tenant_scope_for(user)
    except MissingChurchContextError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=CHURCH_CONTEXT_MISSING_MESSAGE
        ) from e


def active_church_scope(
    user: RequestingUser = Depends(current_user),
    x_active_church: str | None = Header(default=None),
) -> TenantScope:
    """Scope for church-level listings: X-Active-Church, else the token's church."""
    try:
        return active_church_scope_for(user, x_active_church)
    except MissingChurchContextError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=CHURCH_CONTEXT_MISSING_MESSAGE
        ) from e
    except ChurchAccessDeniedError as e:
        logger.info(
            "Church switch denied",
            user_id=user.user_id,
            role=user.role,
            requested_church=x_active_church,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized branch access"
        ) from e
