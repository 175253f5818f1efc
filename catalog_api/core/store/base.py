from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from catalog_api.core.query.models import Condition, SortKey

Document = Dict[str, Any]
Filter = Dict[str, Tuple[Condition, ...]]


class StoreError(Exception):
    """
    Raised by a store when a read cannot be executed.

    client_error marks failures caused by the request itself (for example a
    range filter whose value cannot be compared with the stored field).
    """

    def __init__(self, message: str, *, client_error: bool = False):
        super().__init__(message)
        self.client_error = client_error


@dataclass(frozen=True)
class PopulateSpec:
    """
    Inline expansion of a related collection.

    Forward reference (product.category -> category):
        PopulateSpec(path="category", collection="categories",
                     local_field="category", foreign_field="id", many=False)
    Reverse reference (category -> its products):
        PopulateSpec(path="products", collection="products",
                     local_field="id", foreign_field="category", many=True)
    """

    path: str
    collection: str
    local_field: str
    foreign_field: str = "id"
    many: bool = False


class ResourceStore(ABC):
    name: str

    @abstractmethod
    async def count(self, filter: Filter) -> int:
        """Number of documents matching filter."""

    @abstractmethod
    async def find(
        self,
        filter: Filter,
        sort: Tuple[SortKey, ...] = (),
        select: Optional[FrozenSet[str]] = None,
        skip: int = 0,
        limit: Optional[int] = None,
        populate: Optional[PopulateSpec] = None,
    ) -> List[Document]:
        """One page of matching documents, in sort order."""

    @abstractmethod
    async def get(self, doc_id: str, populate: Optional[PopulateSpec] = None) -> Optional[Document]:
        ...

    @abstractmethod
    async def create(self, doc: Document) -> Document:
        ...

    @abstractmethod
    async def update(self, doc_id: str, changes: Document) -> Optional[Document]:
        ...

    @abstractmethod
    async def delete(self, doc_id: str) -> bool:
        ...
