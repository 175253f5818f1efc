from __future__ import annotations

from catalog_api.core.query.models import PageRef, Pagination


def paginate(total: int, page: int, limit: int) -> Pagination:
    """
    Page links for a result set of `total` records.

    prev exists for every page after the first. next exists only while records
    remain past this page: skip + limit == total is the last page.
    """
    if page < 1 or limit < 1:
        raise ValueError("page and limit must be >= 1")
    if total < 0:
        raise ValueError("total must be >= 0")

    skip = (page - 1) * limit
    prev = PageRef(page=page - 1, limit=limit) if page > 1 else None
    nxt = PageRef(page=page + 1, limit=limit) if skip + limit < total else None
    return Pagination(skip=skip, prev=prev, next=nxt)
