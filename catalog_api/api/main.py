from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from catalog_api.api.endpoints import categories, health, metrics_export, products
from catalog_api.api.errors import register_error_handlers
from catalog_api.api.middleware.error_shaping import SafeErrorMiddleware
from catalog_api.api.middleware.request_context import RequestContextMiddleware
from catalog_api.api.wiring import verify_route_wiring
from catalog_api.config import Settings, load_settings
from catalog_api.core.auth.identity_store import IdentityStore, InMemoryIdentityStore
from catalog_api.core.auth.provider import IdentityResolver
from catalog_api.core.store.memory import MemoryDatabase
from catalog_api.core.store.seed import load_seed_file

log = logging.getLogger("catalog.app")

COLLECTIONS = ("categories", "products")


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[MemoryDatabase] = None,
    identity_store: Optional[IdentityStore] = None,
) -> FastAPI:
    """
    Build the ASGI app.

    Initialization order: settings -> stores (and seed) -> verification key ->
    routes -> wiring audit. A wiring defect raises ConfigurationError here,
    before any traffic is served.
    """
    # 1) settings
    settings = settings or load_settings()

    # 2) stores
    database = database or MemoryDatabase(COLLECTIONS)
    for name in COLLECTIONS:
        database.collection(name)
    if settings.seed_file is not None:
        seed = load_seed_file(settings.seed_file)
        users = seed.pop("users", [])
        inserted = database.seed(seed)
        if users and identity_store is None:
            identity_store = InMemoryIdentityStore.from_documents(users)
        log.info("seeded documents=%d identities=%d", inserted, len(users))

    # 3) verification key
    resolver = IdentityResolver(
        settings.jwt_config(),
        identity_store,
        cookie_name=settings.auth_cookie,
    )

    app = FastAPI(title="Catalog API", version="0.1.0")
    app.state.settings = settings
    app.state.database = database
    app.state.identity_resolver = resolver

    # 4) routes, each router audited before it is mounted
    routers = [
        health.router,
        metrics_export.router,
        categories.create_router(database.collection("categories")),
        products.create_router(database.collection("products"), database.collection("categories")),
    ]
    for router in routers:
        verify_route_wiring(router)
        app.include_router(router)
    register_error_handlers(app)

    # ------------------------------------------------------------
    # Middleware stack (ORDER MATTERS)
    # Starlette reverses add_middleware order: the LAST call is OUTERMOST.
    # Runtime order: SafeErrorMiddleware -> CORSMiddleware -> RequestContext -> routes
    # ------------------------------------------------------------
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SafeErrorMiddleware)

    # 5) wiring audit
    verify_route_wiring(app)

    log.info("app ready env=%s identity_store=%s", settings.env, type(identity_store).__name__ if identity_store else None)
    return app
