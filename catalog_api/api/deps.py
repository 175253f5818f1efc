"""
Per-route pipeline steps for authentication and authorization.

Routes list them in order, identity first:

    @router.post("", dependencies=[Depends(protect), Depends(authorize("seller", "admin"))])

The resolved identity lives on request.state.identity for the rest of the
request; read it through get_identity().
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from starlette.requests import Request

from catalog_api.api.observability.metrics import AUTHZ_DECISIONS_TOTAL
from catalog_api.core.auth.models import CallerIdentity
from catalog_api.core.auth.provider import IdentityResolver
from catalog_api.core.auth.rbac import check_role, validate_roles
from catalog_api.core.errors import AuthError, ConfigurationError

log = logging.getLogger("catalog.auth")

STEP_ATTR = "__catalog_step__"
STEP_PROTECT = "protect"
STEP_ROLE_GATE = "role_gate"
STEP_ADVANCED_RESULTS = "advanced_results"


def mark_step(fn: Callable, step: str) -> Callable:
    setattr(fn, STEP_ATTR, step)
    return fn


def get_identity(request: Request) -> Optional[CallerIdentity]:
    return getattr(request.state, "identity", None)


def _resolver(request: Request) -> IdentityResolver:
    resolver = getattr(request.app.state, "identity_resolver", None)
    if resolver is None:
        raise ConfigurationError("Identity resolver is not configured on the application")
    return resolver


async def protect(request: Request) -> CallerIdentity:
    try:
        identity = await _resolver(request).resolve(request)
    except AuthError as e:
        AUTHZ_DECISIONS_TOTAL.labels(decision="deny", reason=e.kind).inc()
        log.info("authn deny method=%s path=%s reason=%s", request.method, request.url.path, e.kind)
        raise

    request.state.identity = identity
    log.debug("authn allow sub=%s role=%s path=%s", identity.id, identity.role, request.url.path)
    return identity


mark_step(protect, STEP_PROTECT)


def authorize(*roles: str) -> Callable:
    """
    Role gate for a route. Unknown role names fail at registration time.
    """
    allowed = validate_roles(roles)

    async def role_gate(request: Request) -> CallerIdentity:
        identity = get_identity(request)
        try:
            check_role(identity, allowed)
        except ConfigurationError:
            log.error("role gate without identity method=%s path=%s", request.method, request.url.path)
            raise
        except AuthError:
            AUTHZ_DECISIONS_TOTAL.labels(decision="deny", reason=AuthError.FORBIDDEN).inc()
            log.info(
                "authz deny sub=%s role=%s allowed=%s method=%s path=%s",
                identity.id,
                identity.role,
                sorted(allowed),
                request.method,
                request.url.path,
            )
            raise

        AUTHZ_DECISIONS_TOTAL.labels(decision="allow", reason="role").inc()
        log.info(
            "authz allow sub=%s role=%s method=%s path=%s",
            identity.id,
            identity.role,
            request.method,
            request.url.path,
        )
        return identity

    role_gate.allowed_roles = allowed
    return mark_step(role_gate, STEP_ROLE_GATE)
