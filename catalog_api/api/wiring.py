from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, List

from fastapi.routing import APIRoute

from catalog_api.api.deps import STEP_ADVANCED_RESULTS, STEP_ATTR, STEP_PROTECT, STEP_ROLE_GATE
from catalog_api.core.errors import ConfigurationError

log = logging.getLogger("catalog.config")

MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def _calls(dependant) -> Iterator:
    # resolution order: sub-dependencies before the dependency itself
    for sub in dependant.dependencies:
        yield from _calls(sub)
        yield sub.call


def route_steps(route: APIRoute) -> List[str]:
    """Ordered pipeline step names for a route (protect, role_gate, advanced_results)."""
    return [getattr(c, STEP_ATTR) for c in _calls(route.dependant) if hasattr(c, STEP_ATTR)]


def iter_api_routes(routes: Iterable[Any]) -> Iterator[APIRoute]:
    """
    Every APIRoute reachable from a route list.

    include_router may register wrapper objects instead of the routes
    themselves; those are followed through original_router, and mounts
    through their own routes.
    """
    for route in routes:
        if isinstance(route, APIRoute):
            yield route
            continue
        inner = getattr(route, "original_router", None)
        if inner is not None and hasattr(inner, "routes"):
            yield from iter_api_routes(inner.routes)
        elif hasattr(route, "routes"):
            yield from iter_api_routes(route.routes)


def verify_route_wiring(app: Any) -> int:
    """
    Startup check of every API route's pipeline, for a FastAPI app or an
    APIRouter about to be included.

    - a role gate must come after protect
    - every mutating route must run protect
    - protect and role gates must run before the advanced-results store reads

    Raises ConfigurationError listing every defect, or when no API route is
    found at all; returns the number of routes checked.
    """
    problems: List[str] = []
    checked = 0

    for route in iter_api_routes(app.routes):
        checked += 1
        steps = route_steps(route)
        where = f"{','.join(sorted(route.methods))} {route.path}"

        first_protect = steps.index(STEP_PROTECT) if STEP_PROTECT in steps else None

        for i, step in enumerate(steps):
            if step == STEP_ROLE_GATE and (first_protect is None or first_protect > i):
                problems.append(f"{where}: role gate without a preceding protect")
            if step == STEP_ADVANCED_RESULTS:
                late = [s for s in steps[i + 1:] if s in (STEP_PROTECT, STEP_ROLE_GATE)]
                if late:
                    problems.append(f"{where}: auth step after advanced results")

        if route.methods & MUTATING_METHODS and first_protect is None:
            problems.append(f"{where}: mutating route without protect")

    if checked == 0:
        problems.append("no API routes found to verify")

    if problems:
        for p in problems:
            log.error("route wiring defect: %s", p)
        raise ConfigurationError("Route wiring defects: " + "; ".join(problems))

    log.info("route wiring verified routes=%d", checked)
    return checked
