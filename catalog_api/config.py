"""
Process-wide settings.

Loaded once at startup from CATALOG_* environment variables and passed into
create_app(). Nothing mutates a Settings instance after it is built.

    CATALOG_ENV                  dev | prod (default dev)
    CATALOG_JWT_SECRET           HMAC verification key
    CATALOG_JWT_SECRET_FILE      file holding the key (used when CATALOG_JWT_SECRET is unset)
    CATALOG_JWT_ALGORITHM        default HS256
    CATALOG_JWT_ISSUER / CATALOG_JWT_AUDIENCE   optional claim checks
    CATALOG_JWT_LEEWAY_SECONDS   default 0
    CATALOG_AUTH_COOKIE          fallback credential cookie, default "token"; empty disables
    CATALOG_DEFAULT_PAGE_LIMIT   default 25
    CATALOG_MAX_PAGE_LIMIT       default 100
    CATALOG_DEFAULT_SORT         default "-created_at"
    CATALOG_SEED_FILE            optional JSON/YAML seed file
    CATALOG_CORS_ORIGINS         comma separated, default "*"
    CATALOG_HOST / CATALOG_PORT  uvicorn bind, default 0.0.0.0:8000
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

from catalog_api.core.auth.provider import JwtConfig
from catalog_api.core.errors import ConfigurationError

log = logging.getLogger("catalog.config")

DEV_JWT_SECRET = "dev-insecure-secret"


@dataclass(frozen=True)
class Settings:
    env: str = "dev"
    jwt_secret: str = DEV_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_issuer: Optional[str] = None
    jwt_audience: Optional[str] = None
    jwt_leeway_seconds: int = 0
    auth_cookie: Optional[str] = "token"
    default_page_limit: int = 25
    max_page_limit: int = 100
    default_sort: str = "-created_at"
    seed_file: Optional[Path] = None
    cors_origins: Tuple[str, ...] = ("*",)
    host: str = "0.0.0.0"
    port: int = 8000

    def __post_init__(self) -> None:
        if self.default_page_limit < 1:
            raise ConfigurationError("default_page_limit must be >= 1")
        if self.max_page_limit < self.default_page_limit:
            raise ConfigurationError("max_page_limit must be >= default_page_limit")

    @property
    def is_prod(self) -> bool:
        return self.env == "prod"

    def jwt_config(self) -> JwtConfig:
        return JwtConfig(
            signing_key=self.jwt_secret,
            algorithm=self.jwt_algorithm,
            issuer=self.jwt_issuer,
            audience=self.jwt_audience,
            leeway_seconds=self.jwt_leeway_seconds,
        )


def _get(environ: Mapping[str, str], key: str) -> str:
    return (environ.get(key) or "").strip()


def _int(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = _get(environ, key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}")


def _read_secret(environ: Mapping[str, str], env: str) -> str:
    secret = _get(environ, "CATALOG_JWT_SECRET")
    if secret:
        return secret

    path = _get(environ, "CATALOG_JWT_SECRET_FILE")
    if path:
        try:
            secret = Path(path).read_text(encoding="utf-8").strip()
        except OSError as e:
            raise ConfigurationError(f"Cannot read CATALOG_JWT_SECRET_FILE={path}: {type(e).__name__}")
        if not secret:
            raise ConfigurationError(f"CATALOG_JWT_SECRET_FILE={path} is empty")
        return secret

    if env == "prod":
        raise ConfigurationError("CATALOG_JWT_SECRET or CATALOG_JWT_SECRET_FILE is required in prod")

    log.warning("No JWT secret configured; using insecure dev secret (never use in prod)")
    return DEV_JWT_SECRET


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    e = os.environ if environ is None else environ
    env = (_get(e, "CATALOG_ENV") or "dev").lower()

    cors_raw = _get(e, "CATALOG_CORS_ORIGINS")
    cors = tuple(o.strip() for o in cors_raw.split(",") if o.strip()) if cors_raw else ("*",)

    cookie: Optional[str] = "token"
    if "CATALOG_AUTH_COOKIE" in e:
        cookie = _get(e, "CATALOG_AUTH_COOKIE") or None

    seed = _get(e, "CATALOG_SEED_FILE")

    return Settings(
        env=env,
        jwt_secret=_read_secret(e, env),
        jwt_algorithm=_get(e, "CATALOG_JWT_ALGORITHM") or "HS256",
        jwt_issuer=_get(e, "CATALOG_JWT_ISSUER") or None,
        jwt_audience=_get(e, "CATALOG_JWT_AUDIENCE") or None,
        jwt_leeway_seconds=_int(e, "CATALOG_JWT_LEEWAY_SECONDS", 0),
        auth_cookie=cookie,
        default_page_limit=_int(e, "CATALOG_DEFAULT_PAGE_LIMIT", 25),
        max_page_limit=_int(e, "CATALOG_MAX_PAGE_LIMIT", 100),
        default_sort=_get(e, "CATALOG_DEFAULT_SORT") or "-created_at",
        seed_file=Path(seed) if seed else None,
        cors_origins=cors,
        host=_get(e, "CATALOG_HOST") or "0.0.0.0",
        port=_int(e, "CATALOG_PORT", 8000),
    )
