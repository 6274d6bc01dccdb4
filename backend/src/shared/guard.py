"""
Authorization guard: role and permission checks over verified claims.

Roles are a flat, case-sensitive space. `admin` does not satisfy a `sponsor`
check. Ownership checks that need the loaded entity live in the integrity
coordinator.
"""
from typing import Iterable, Optional, Union

from .errors import ForbiddenError, UnauthorizedError
from .tokens import Claims


def require_authenticated(claims: Optional[Claims]) -> Claims:
    if claims is None:
        raise UnauthorizedError()
    return claims


def require_role(claims: Optional[Claims], roles: Union[str, Iterable[str]]) -> Claims:
    """Admit if the claim role is exactly one of `roles`."""
    claims = require_authenticated(claims)
    allowed = (roles,) if isinstance(roles, str) else tuple(roles)
    if claims.role not in allowed:
        raise ForbiddenError(f"Role '{claims.role}' is not allowed for this operation")
    return claims


def require_permission(claims: Optional[Claims], permission: str) -> Claims:
    """Admit if `permission` is carried verbatim in the token."""
    claims = require_authenticated(claims)
    if permission not in claims.permissions:
        raise ForbiddenError(f"Missing permission '{permission}'")
    return claims
