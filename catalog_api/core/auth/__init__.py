from .identity_store import IdentityStore, InMemoryIdentityStore
from .models import ROLES, CallerIdentity
from .provider import IdentityResolver, JwtConfig
from .rbac import check_role, validate_roles

__all__ = [
    "ROLES",
    "CallerIdentity",
    "IdentityResolver",
    "IdentityStore",
    "InMemoryIdentityStore",
    "JwtConfig",
    "check_role",
    "validate_roles",
]
