from __future__ import annotations

from typing import FrozenSet, Iterable, Optional

from catalog_api.core.auth.models import ROLES, CallerIdentity
from catalog_api.core.errors import AuthError, ConfigurationError


def validate_roles(roles: Iterable[str]) -> FrozenSet[str]:
    allowed = frozenset(roles)
    if not allowed:
        raise ConfigurationError("Role gate needs at least one role")
    unknown = sorted(r for r in allowed if r not in ROLES)
    if unknown:
        raise ConfigurationError(f"Unknown role(s): {', '.join(unknown)}")
    return allowed


def check_role(identity: Optional[CallerIdentity], allowed: FrozenSet[str]) -> None:
    """
    Membership check against an allow-list (no hierarchy: admin is only
    permitted where admin is listed).
    """
    if identity is None:
        raise ConfigurationError("Role gate reached without a resolved identity; wire protect first")
    if identity.role not in allowed:
        raise AuthError(
            AuthError.FORBIDDEN,
            f"Role '{identity.role}' is not authorized to access this route",
        )
