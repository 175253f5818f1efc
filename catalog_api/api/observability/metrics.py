from __future__ import annotations

import re
from prometheus_client import Counter, Gauge, Histogram


def normalize_path(path: str) -> str:
    """Reduce high-cardinality paths for metrics labels."""
    p = path or "/"

    # UUID-ish
    p = re.sub(r"/[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}", "/:uuid", p)
    # long hex (generated document ids)
    p = re.sub(r"/[0-9a-fA-F]{16,}", "/:hex", p)
    # ints
    p = re.sub(r"/\d+", "/:id", p)

    # Resource ids under collections
    p = re.sub(r"^(/api/v1/(?:categories|products))/(?!:)[^/]+", r"\1/:id", p)

    return p


HTTP_REQUESTS_TOTAL = Counter(
    "catalog_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "catalog_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

AUTHZ_DECISIONS_TOTAL = Counter(
    "catalog_authz_decisions_total",
    "Authorization decisions",
    ["decision", "reason"],
)

QUERY_EXECUTIONS_TOTAL = Counter(
    "catalog_query_executions_total",
    "Advanced-results store queries",
    ["collection", "outcome"],
)

STORE_DOCUMENTS = Gauge(
    "catalog_store_documents",
    "Documents held per collection, sampled at scrape time",
    ["collection"],
)
