"""
Query-string translation for list endpoints.

Turns flat query parameters into a QueryDescriptor:

  ?select=name,price&sort=-price,name&page=2&limit=10
  ?price[gte]=10&price[lte]=20&category=abc
  ?price=gt:100&tags=in:a,b

Reserved keys (select, sort, page, limit) never become filters. Every other key
is a filter on the field of the same name.
"""
from __future__ import annotations

import re
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple, Union

from catalog_api.core.errors import TranslationError
from catalog_api.core.query.models import ASC, DESC, OPERATORS, Condition, QueryDescriptor, SortKey

RESERVED_KEYS: Tuple[str, ...] = ("select", "sort", "page", "limit")

DEFAULT_LIMIT = 25
MAX_LIMIT = 100
DEFAULT_SORT: Tuple[SortKey, ...] = (("created_at", DESC),)

RawParams = Union[Mapping[str, str], Iterable[Tuple[str, str]]]

_KEY_OP = re.compile(r"^([^\[\]]+)\[([^\[\]]*)\]$")
_VALUE_OP = re.compile(r"^(%s):(.*)$" % "|".join(sorted(OPERATORS, key=len, reverse=True)), re.DOTALL)
_INT = re.compile(r"^-?\d+$")
_FLOAT = re.compile(r"^-?(\d+\.\d*|\.\d+)([eE][-+]?\d+)?$")
_DIGITS = re.compile(r"^\d+$")


def _pairs(raw: RawParams) -> Iterable[Tuple[str, str]]:
    if isinstance(raw, Mapping):
        return list(raw.items())
    return list(raw)


def coerce_value(raw: str) -> Any:
    """Best-effort typing of a query-string scalar: int, float, bool, else str."""
    s = raw.strip()
    if _INT.match(s):
        return int(s)
    if _FLOAT.match(s):
        return float(s)
    low = s.lower()
    if low == "true":
        return True
    if low == "false":
        return False
    return raw


def _condition(op: str, raw: str) -> Condition:
    if op == "in":
        parts = tuple(x for x in raw.split(",") if x.strip() != "")
        return Condition(op="in", value=tuple(coerce_value(x) for x in parts), raw=parts)
    return Condition(op=op, value=coerce_value(raw), raw=raw)


def _split_filter(key: str, value: str) -> Tuple[str, Condition]:
    m = _KEY_OP.match(key)
    if m:
        field, op = m.group(1).strip(), m.group(2).strip().lower()
        if op not in OPERATORS:
            raise TranslationError(
                TranslationError.INVALID_OPERATOR,
                f"Unsupported operator '{op}' on field '{field}'",
            )
        return field, _condition(op, value)

    if "[" in key or "]" in key:
        raise TranslationError(TranslationError.INVALID_OPERATOR, f"Malformed filter key '{key}'")

    vm = _VALUE_OP.match(value)
    if vm:
        return key, _condition(vm.group(1), vm.group(2))
    return key, _condition("eq", value)


def _reject_reserved_operator(key: str) -> None:
    m = _KEY_OP.match(key)
    base = m.group(1).strip() if m else None
    if base not in RESERVED_KEYS:
        return
    if base in ("page", "limit"):
        raise TranslationError(
            TranslationError.INVALID_PAGINATION,
            f"'{base}' does not take an operator",
        )
    raise TranslationError(TranslationError.INVALID_OPERATOR, f"'{base}' does not take an operator")


def _positive_int(name: str, raw: str) -> int:
    s = (raw or "").strip()
    if not _DIGITS.match(s) or int(s) < 1:
        raise TranslationError(
            TranslationError.INVALID_PAGINATION,
            f"'{name}' must be a positive integer",
        )
    return int(s)


def parse_select(raw: Optional[str]) -> Optional[FrozenSet[str]]:
    if raw is None:
        return None
    fields = frozenset(f.strip() for f in raw.split(",") if f.strip())
    return fields or None


def parse_sort(raw: Optional[str], default: Tuple[SortKey, ...] = DEFAULT_SORT) -> Tuple[SortKey, ...]:
    if raw is None:
        return default
    out = []
    for part in raw.split(","):
        p = part.strip()
        if not p:
            continue
        if p.startswith("-"):
            name, direction = p[1:].strip(), DESC
        else:
            name, direction = p, ASC
        if name:
            out.append((name, direction))
    return tuple(out) or default


def translate(
    raw_params: RawParams,
    *,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
    default_sort: Tuple[SortKey, ...] = DEFAULT_SORT,
) -> QueryDescriptor:
    """
    Build a QueryDescriptor from raw query parameters.

    Raises TranslationError for bad pagination values or unknown operators.
    The input is never modified.
    """
    reserved: Dict[str, str] = {}
    by_field: Dict[str, Dict[str, Condition]] = {}

    for key, value in _pairs(raw_params):
        if key in RESERVED_KEYS:
            reserved[key] = value
            continue
        _reject_reserved_operator(key)
        field, cond = _split_filter(key, value)
        by_field.setdefault(field, {})[cond.op] = cond

    page = _positive_int("page", reserved["page"]) if "page" in reserved else 1
    limit = _positive_int("limit", reserved["limit"]) if "limit" in reserved else default_limit
    if limit > max_limit:
        raise TranslationError(
            TranslationError.INVALID_PAGINATION,
            f"'limit' must not exceed {max_limit}",
        )

    return QueryDescriptor(
        filter={f: tuple(conds.values()) for f, conds in by_field.items()},
        sort=parse_sort(reserved.get("sort"), default_sort),
        select=parse_select(reserved.get("select")),
        page=page,
        limit=limit,
    )
