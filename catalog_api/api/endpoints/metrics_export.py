"""Prometheus metrics scrape endpoint.

Read-only. Collection sizes are sampled into catalog_store_documents on each
scrape, then the process-wide default registry is rendered.
"""

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from catalog_api.api.observability.metrics import STORE_DOCUMENTS

router = APIRouter()


def _sample_store_sizes(request: Request) -> None:
    database = getattr(request.app.state, "database", None)
    if database is None:
        return
    for name in database.names():
        STORE_DOCUMENTS.labels(collection=name).set(len(database.collection(name)))


@router.get("/metrics", include_in_schema=False)
def prometheus_metrics(request: Request) -> Response:
    _sample_store_sizes(request)
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
