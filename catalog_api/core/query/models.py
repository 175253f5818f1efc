from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, List, Optional, Tuple

if TYPE_CHECKING:
    from catalog_api.core.store.base import PopulateSpec

OPERATORS: Tuple[str, ...] = ("eq", "gt", "gte", "lt", "lte", "in")

ASC = "asc"
DESC = "desc"

SortKey = Tuple[str, str]  # (field, "asc" | "desc")


@dataclass(frozen=True)
class Condition:
    op: str
    value: Any
    # query-string text before typing; a tuple of items for "in"
    raw: Any = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.op not in OPERATORS:
            raise ValueError(f"Unknown operator: {self.op}")


@dataclass(frozen=True)
class QueryDescriptor:
    """
    Structured form of a list request.

    filter maps a field to every condition that constrains it, so ranges such
    as price[gte]=10&price[lte]=20 keep both bounds.
    select is None when all fields are requested.
    populate names the relation the route embeds in each result, if any.
    """

    filter: Dict[str, Tuple[Condition, ...]] = field(default_factory=dict)
    sort: Tuple[SortKey, ...] = ()
    select: Optional[FrozenSet[str]] = None
    page: int = 1
    limit: int = 25
    populate: Optional[PopulateSpec] = None

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class PageRef:
    page: int
    limit: int

    def to_dict(self) -> Dict[str, int]:
        return {"page": self.page, "limit": self.limit}


@dataclass(frozen=True)
class Pagination:
    skip: int
    prev: Optional[PageRef] = None
    next: Optional[PageRef] = None

    def to_dict(self) -> Dict[str, Any]:
        # absent links are omitted, never null
        out: Dict[str, Any] = {}
        if self.next is not None:
            out["next"] = self.next.to_dict()
        if self.prev is not None:
            out["prev"] = self.prev.to_dict()
        return out


@dataclass(frozen=True)
class ResultEnvelope:
    data: List[Dict[str, Any]]
    pagination: Pagination
    total: int
    success: bool = True

    @property
    def count(self) -> int:
        return len(self.data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "count": self.count,
            "pagination": self.pagination.to_dict(),
            "data": self.data,
        }
