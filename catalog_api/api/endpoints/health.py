from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

log = logging.getLogger("catalog.health")

router = APIRouter(tags=["health"])


@router.get("/api/v1/health/live")
async def liveness():
    return {"status": "alive"}


@router.get("/api/v1/health/ready")
async def readiness(request: Request):
    """
    Readiness reflects ability to serve traffic: every registered collection
    answers a count and the identity resolver is configured.
    """
    problems: list[str] = []

    if getattr(request.app.state, "identity_resolver", None) is None:
        problems.append("identity_resolver_missing")

    database = getattr(request.app.state, "database", None)
    for name in database.names() if database is not None else []:
        try:
            await database.collection(name).count({})
        except Exception as e:
            log.warning("readiness check failed collection=%s err=%s", name, type(e).__name__)
            problems.append(f"store_unavailable:{name}")

    if problems:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "problems": problems},
        )

    return {"status": "ready"}
