"""
In-memory resource store.

Reference implementation of ResourceStore used by the default app and the
test-suite. Documents are plain dicts; every document has an "id" and a
"created_at" (UTC ISO-8601) assigned on insert.
"""
from __future__ import annotations

import copy
import itertools
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from catalog_api.core.query.models import DESC, Condition, SortKey
from catalog_api.core.store.base import Document, Filter, PopulateSpec, ResourceStore, StoreError

log = logging.getLogger("catalog.store")

_MISSING = object()
_IMMUTABLE_FIELDS = ("id", "created_at")


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _lookup(doc: Document, path: str) -> Any:
    cur: Any = doc
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return _MISSING
        cur = cur[part]
    return cur


def _loose_equal(a: Any, b: Any) -> bool:
    if a == b:
        return True
    # query values arrive typed; stored ids and codes are often numeric strings
    if isinstance(a, str) != isinstance(b, str):
        return str(a).lower() == str(b).lower()
    return False


def _equal(actual: Any, value: Any, raw: Any) -> bool:
    # string fields compare against the text as sent, so "007" stays "007"
    if isinstance(actual, str) and isinstance(raw, str):
        return actual == raw
    return _loose_equal(actual, value)


def _compare(field: str, actual: Any, cond: Condition) -> bool:
    try:
        if cond.op == "gt":
            return actual > cond.value
        if cond.op == "gte":
            return actual >= cond.value
        if cond.op == "lt":
            return actual < cond.value
        if cond.op == "lte":
            return actual <= cond.value
    except TypeError as e:
        raise StoreError(
            f"Cannot compare field '{field}' with {cond.value!r}",
            client_error=True,
        ) from e
    raise StoreError(f"Unsupported operator: {cond.op}")


def _matches(doc: Document, filter: Filter) -> bool:
    for field, conds in filter.items():
        actual = _lookup(doc, field)
        for cond in conds:
            if cond.op == "eq":
                if actual is _MISSING or not _equal(actual, cond.value, cond.raw):
                    return False
            elif cond.op == "in":
                raws = cond.raw if cond.raw is not None else (None,) * len(cond.value)
                if actual is _MISSING or not any(_equal(actual, v, r) for v, r in zip(cond.value, raws)):
                    return False
            else:
                if actual is _MISSING or actual is None:
                    return False
                if not _compare(field, actual, cond):
                    return False
    return True


def _project(doc: Document, select: Optional[FrozenSet[str]], keep: Iterable[str] = ()) -> Document:
    if select is None:
        return doc
    wanted = set(select) | {"id"} | set(keep)
    return {k: v for k, v in doc.items() if k in wanted}


class MemoryCollection(ResourceStore):
    def __init__(self, name: str, database: "MemoryDatabase"):
        self.name = name
        self._db = database
        self._docs: Dict[str, Tuple[int, Document]] = {}
        self._seq = itertools.count()

    # ------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------
    def _ordered(self) -> List[Document]:
        return [d for _, d in sorted(self._docs.values(), key=lambda x: x[0])]

    def _select(self, filter: Filter) -> List[Document]:
        return [d for d in self._ordered() if _matches(d, filter)]

    @staticmethod
    def _sorted(docs: List[Document], sort: Tuple[SortKey, ...]) -> List[Document]:
        out = list(docs)
        # stable sorts applied last key first give a multi-key ordering;
        # ties fall back to insertion order
        for field, direction in reversed(sort):
            def key(d: Document, f: str = field) -> Tuple[bool, Any]:
                v = _lookup(d, f)
                missing = v is _MISSING or v is None
                return (missing, None if missing else v)

            try:
                out.sort(key=key, reverse=(direction == DESC))
            except TypeError as e:
                raise StoreError(f"Cannot sort by field '{field}': mixed value types", client_error=True) from e
        return out

    def _populate(self, docs: List[Document], spec: PopulateSpec) -> List[Document]:
        related = self._db.collection(spec.collection)
        out: List[Document] = []
        for d in docs:
            doc = dict(d)
            local = _lookup(d, spec.local_field)
            if spec.many:
                doc[spec.path] = [
                    copy.deepcopy(r)
                    for r in related._ordered()
                    if local is not _MISSING and _loose_equal(_lookup(r, spec.foreign_field), local)
                ]
            else:
                match = None
                if local is not _MISSING and local is not None:
                    for r in related._ordered():
                        if _loose_equal(_lookup(r, spec.foreign_field), local):
                            match = copy.deepcopy(r)
                            break
                doc[spec.path] = match
            out.append(doc)
        return out

    # ------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------
    async def count(self, filter: Filter) -> int:
        return len(self._select(filter))

    async def find(
        self,
        filter: Filter,
        sort: Tuple[SortKey, ...] = (),
        select: Optional[FrozenSet[str]] = None,
        skip: int = 0,
        limit: Optional[int] = None,
        populate: Optional[PopulateSpec] = None,
    ) -> List[Document]:
        docs = self._sorted(self._select(filter), sort)
        end = None if limit is None else skip + limit
        page = [copy.deepcopy(d) for d in docs[skip:end]]
        keep: Tuple[str, ...] = ()
        if populate is not None:
            page = self._populate(page, populate)
            keep = (populate.path,)
        return [_project(d, select, keep) for d in page]

    async def get(self, doc_id: str, populate: Optional[PopulateSpec] = None) -> Optional[Document]:
        entry = self._docs.get(str(doc_id))
        if entry is None:
            return None
        doc = copy.deepcopy(entry[1])
        if populate is not None:
            doc = self._populate([doc], populate)[0]
        return doc

    # ------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------
    async def create(self, doc: Document) -> Document:
        return self.insert(doc)

    def insert(self, doc: Document) -> Document:
        stored = copy.deepcopy(doc)
        stored["id"] = str(stored.get("id") or uuid.uuid4().hex)
        stored.setdefault("created_at", _utc_now_iso())
        if stored["id"] in self._docs:
            raise StoreError(f"Duplicate id in {self.name}: {stored['id']}", client_error=True)
        self._docs[stored["id"]] = (next(self._seq), stored)
        log.debug("insert collection=%s id=%s", self.name, stored["id"])
        return copy.deepcopy(stored)

    async def update(self, doc_id: str, changes: Document) -> Optional[Document]:
        entry = self._docs.get(str(doc_id))
        if entry is None:
            return None
        seq, current = entry
        merged = dict(current)
        merged.update({k: copy.deepcopy(v) for k, v in changes.items() if k not in _IMMUTABLE_FIELDS})
        self._docs[current["id"]] = (seq, merged)
        return copy.deepcopy(merged)

    async def delete(self, doc_id: str) -> bool:
        return self._docs.pop(str(doc_id), None) is not None

    def __len__(self) -> int:
        return len(self._docs)


class MemoryDatabase:
    """Named collections sharing one process; populate resolves across them."""

    def __init__(self, names: Iterable[str] = ()):
        self._collections: Dict[str, MemoryCollection] = {}
        for n in names:
            self.collection(n)

    def collection(self, name: str) -> MemoryCollection:
        if name not in self._collections:
            self._collections[name] = MemoryCollection(name, self)
        return self._collections[name]

    def names(self) -> List[str]:
        return sorted(self._collections.keys())

    def seed(self, data: Dict[str, List[Document]]) -> int:
        n = 0
        for name, docs in data.items():
            coll = self.collection(name)
            for d in docs or []:
                coll.insert(d)
                n += 1
        return n
