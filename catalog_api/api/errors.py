from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse

from catalog_api.core.errors import CatalogError, ConfigurationError

log = logging.getLogger("catalog.errors")

_HTTP_KINDS = {
    404: "not_found",
    405: "method_not_allowed",
}


def error_body(kind: str, message: str, request: Optional[Request] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"success": False, "error": {"kind": kind, "message": message}}
    rid = getattr(request.state, "request_id", None) if request is not None else None
    if rid:
        payload["request_id"] = rid
    return payload


async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    message = exc.message
    if isinstance(exc, ConfigurationError):
        log.error("configuration error path=%s err=%s", request.url.path, exc.message)
        message = "Server misconfiguration"
    elif exc.status_code >= 500:
        # internal detail stays in the server log
        log.error("server error kind=%s path=%s err=%s", exc.kind, request.url.path, exc.message)
        message = "Internal Server Error"

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.kind, message, request),
        headers=headers,
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    kind = _HTTP_KINDS.get(exc.status_code, "http_error")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(kind, str(exc.detail), request),
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = sorted({".".join(str(p) for p in e.get("loc", ())[1:]) for e in exc.errors()})
    message = "Invalid request body" + (f": {', '.join(f for f in fields if f)}" if fields else "")
    return JSONResponse(status_code=400, content=error_body("invalid_body", message, request))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CatalogError, catalog_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
