"""
Advanced results: filtering, sorting, field selection, pagination and
population for any list route.

Built once per route with the collection it serves:

    @router.get("", dependencies=[Depends(advanced_results(store, populate=spec))])
    async def list_things(request: Request):
        return get_advanced_results(request).to_dict()

The step never writes the response. It attaches a ResultEnvelope to
request.state.advanced_results and the handler decides what to send.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from starlette.requests import Request

from catalog_api.api.deps import STEP_ADVANCED_RESULTS, mark_step
from catalog_api.api.observability.metrics import QUERY_EXECUTIONS_TOTAL
from catalog_api.config import Settings
from catalog_api.core.errors import ConfigurationError, QueryExecutionError
from catalog_api.core.query.models import Condition, QueryDescriptor, ResultEnvelope
from catalog_api.core.query.paginator import paginate
from catalog_api.core.query.translator import parse_sort, translate
from catalog_api.core.store.base import Document, PopulateSpec, ResourceStore, StoreError

log = logging.getLogger("catalog.query")


def get_advanced_results(request: Request) -> ResultEnvelope:
    envelope = getattr(request.state, "advanced_results", None)
    if envelope is None:
        raise ConfigurationError("Route reads advanced results but advanced_results() is not wired")
    return envelope


def _settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else Settings()


def _descriptor(
    request: Request,
    path_filters: Mapping[str, str],
    populate: Optional[PopulateSpec],
) -> QueryDescriptor:
    settings = _settings(request)
    descriptor = translate(
        request.query_params.multi_items(),
        default_limit=settings.default_page_limit,
        max_limit=settings.max_page_limit,
        default_sort=parse_sort(settings.default_sort),
    )
    if not path_filters:
        return dataclasses.replace(descriptor, populate=populate)

    # path parameters scope the collection and win over query filters on the same field
    scoped = dict(descriptor.filter)
    for param, field in path_filters.items():
        value = request.path_params[param]
        scoped[field] = (Condition(op="eq", value=value, raw=value),)
    return dataclasses.replace(descriptor, filter=scoped, populate=populate)


async def _count_and_find(store: ResourceStore, d: QueryDescriptor) -> Tuple[int, List[Document]]:
    count_task = asyncio.ensure_future(store.count(d.filter))
    find_task = asyncio.ensure_future(
        store.find(d.filter, sort=d.sort, select=d.select, skip=d.skip, limit=d.limit, populate=d.populate)
    )
    try:
        total, data = await asyncio.gather(count_task, find_task)
    except BaseException:
        # one side failed or the request was cancelled; drop the other read
        for t in (count_task, find_task):
            if not t.done():
                t.cancel()
        raise
    return total, data


def advanced_results(
    store: ResourceStore,
    populate: Optional[PopulateSpec] = None,
    *,
    path_filters: Optional[Dict[str, str]] = None,
) -> Callable:
    """
    Pipeline step serving list requests over `store`.

    path_filters maps a path parameter to the field it constrains, e.g.
    {"category_id": "category"} for /categories/{category_id}/products.
    """
    scope = dict(path_filters or {})
    collection = getattr(store, "name", type(store).__name__)

    async def advanced_results_step(request: Request) -> ResultEnvelope:
        d = _descriptor(request, scope, populate)

        try:
            total, data = await _count_and_find(store, d)
        except StoreError as e:
            QUERY_EXECUTIONS_TOTAL.labels(collection=collection, outcome="error").inc()
            log.warning("query failed collection=%s client_error=%s err=%s", collection, e.client_error, e)
            message = str(e) if e.client_error else "Query execution failed"
            raise QueryExecutionError(message, client_error=e.client_error) from e
        except asyncio.TimeoutError as e:
            QUERY_EXECUTIONS_TOTAL.labels(collection=collection, outcome="timeout").inc()
            log.warning("query timed out collection=%s", collection)
            raise QueryExecutionError("Query timed out") from e
        except Exception as e:
            QUERY_EXECUTIONS_TOTAL.labels(collection=collection, outcome="error").inc()
            log.exception("query failed collection=%s", collection)
            raise QueryExecutionError("Query execution failed") from e

        QUERY_EXECUTIONS_TOTAL.labels(collection=collection, outcome="ok").inc()
        envelope = ResultEnvelope(data=data, pagination=paginate(total, d.page, d.limit), total=total)
        request.state.advanced_results = envelope
        log.debug(
            "query ok collection=%s total=%d page=%d limit=%d returned=%d",
            collection,
            total,
            d.page,
            d.limit,
            envelope.count,
        )
        return envelope

    advanced_results_step.store = store
    advanced_results_step.populate = populate
    return mark_step(advanced_results_step, STEP_ADVANCED_RESULTS)
