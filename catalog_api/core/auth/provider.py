from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import jwt
from starlette.requests import Request

from catalog_api.core.auth.identity_store import IdentityStore
from catalog_api.core.auth.models import CallerIdentity, is_known_role
from catalog_api.core.errors import AuthError, ConfigurationError

log = logging.getLogger("catalog.auth")


@dataclass(frozen=True)
class JwtConfig:
    signing_key: str
    algorithm: str = "HS256"
    issuer: Optional[str] = None
    audience: Optional[str] = None
    leeway_seconds: int = 0


def extract_credential(request: Request, cookie_name: Optional[str] = "token") -> str:
    """
    Bearer token from the Authorization header, else from the auth cookie.

    Missing everywhere -> no_credential. A header that is present but not a
    Bearer credential -> invalid_credential.
    """
    auth_header = request.headers.get("authorization")
    if auth_header:
        scheme, _, token = auth_header.strip().partition(" ")
        token = token.strip()
        if scheme.lower() != "bearer" or not token:
            raise AuthError(AuthError.INVALID_CREDENTIAL, "Invalid authorization header")
        return token

    if cookie_name:
        cookie = (request.cookies.get(cookie_name) or "").strip()
        if cookie:
            return cookie

    raise AuthError(AuthError.NO_CREDENTIAL, "Authentication required")


class IdentityResolver:
    """
    Verifies bearer JWTs and resolves the caller identity.

    Tokens are issued elsewhere; this class only verifies them. Claims used:
      sub   identity id (required)
      exp   expiry (required)
      role  role claim, authoritative only when no identity store is configured
    """

    def __init__(
        self,
        cfg: JwtConfig,
        identity_store: Optional[IdentityStore] = None,
        *,
        cookie_name: Optional[str] = "token",
    ):
        if not cfg.signing_key:
            raise ConfigurationError("JWT signing key is empty")
        self.cfg = cfg
        self.identity_store = identity_store
        self.cookie_name = cookie_name

    def verify(self, token: str) -> dict:
        options = {
            "verify_signature": True,
            "verify_exp": True,
            "verify_iss": self.cfg.issuer is not None,
            "verify_aud": self.cfg.audience is not None,
            "require": ["exp", "sub"],
        }
        try:
            return jwt.decode(
                token,
                self.cfg.signing_key,
                algorithms=[self.cfg.algorithm],
                issuer=self.cfg.issuer,
                audience=self.cfg.audience,
                options=options,
                leeway=self.cfg.leeway_seconds,
            )
        except jwt.ExpiredSignatureError:
            raise AuthError(AuthError.INVALID_CREDENTIAL, "Token expired") from None
        except jwt.InvalidTokenError:
            raise AuthError(AuthError.INVALID_CREDENTIAL, "Invalid bearer token") from None

    async def resolve(self, request: Request) -> CallerIdentity:
        token = extract_credential(request, self.cookie_name)
        claims = self.verify(token)

        sub = str(claims["sub"])
        if self.identity_store is not None:
            role = await self.identity_store.lookup_role(sub)
            if role is None:
                log.info("authn deny sub=%s reason=unknown_identity", sub)
                raise AuthError(AuthError.INVALID_CREDENTIAL, "Unknown identity")
        else:
            role = claims.get("role")

        if not is_known_role(role):
            log.info("authn deny sub=%s reason=invalid_role", sub)
            raise AuthError(AuthError.INVALID_CREDENTIAL, "Token carries no valid role")

        expiry = datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc)
        return CallerIdentity(id=sub, role=role, token_expiry=expiry)
