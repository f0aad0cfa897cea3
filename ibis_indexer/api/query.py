"""Parsing of query-string parameters into store queries and filters."""

from __future__ import annotations

import enum
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

DEFAULT_LIMIT = 50
MAX_LIMIT = 500

VALID_OPERATORS = frozenset({"eq", "neq", "gt", "gte", "lt", "lte"})
RESERVED_PARAMS = frozenset({"limit", "offset", "order"})

_INT = re.compile(r"[+-]?[0-9]+")


class OrderDir(str, enum.Enum):
    """Sort direction of a query."""

    ASC = "asc"
    DESC = "desc"


class QueryError(ValueError):
    """Raised when query parameters are malformed."""


@dataclass(frozen=True)
class Filter:
    """A single field condition such as ``block_number >= 100``."""

    field: str
    operator: str
    value: Any


@dataclass
class Query:
    """Pagination, ordering and filtering for an event table query."""

    limit: int = 0
    offset: int = 0
    order_by: str = "block_number"
    order_dir: OrderDir = OrderDir.DESC
    filters: list[Filter] = field(default_factory=list)


def _parse_int(text: str) -> int | None:
    if not _INT.fullmatch(text):
        return None
    return int(text)


def parse_filter_param(field: str, value: str) -> Filter:
    """Parse ``op.value`` into a filter; without a known operator it means ``eq``."""
    operator, sep, rest = value.partition(".")
    if sep and operator in VALID_OPERATORS:
        return Filter(field, operator, rest)
    return Filter(field, "eq", value)


def parse_filters(params: Mapping[str, str]) -> list[Filter]:
    """Build filters from every non-reserved parameter, using its first value."""
    return [
        parse_filter_param(key, params[key])
        for key in dict.fromkeys(params)
        if key not in RESERVED_PARAMS
    ]


def parse_query(params: Mapping[str, str]) -> Query:
    """Parse ``limit``, ``offset``, ``order`` and field filters into a query."""
    query = Query(limit=DEFAULT_LIMIT, order_by="block_number", order_dir=OrderDir.DESC)

    raw_limit = params.get("limit", "")
    if raw_limit:
        limit = _parse_int(raw_limit)
        if limit is None or limit < 1:
            raise QueryError(f"invalid limit: {raw_limit}")
        query.limit = min(limit, MAX_LIMIT)

    raw_offset = params.get("offset", "")
    if raw_offset:
        offset = _parse_int(raw_offset)
        if offset is None or offset < 0:
            raise QueryError(f"invalid offset: {raw_offset}")
        query.offset = offset

    raw_order = params.get("order", "")
    if raw_order:
        parts = raw_order.split(".", 1)
        query.order_by = parts[0]
        if len(parts) == 2 and parts[1] == "asc":
            query.order_dir = OrderDir.ASC

    query.filters = parse_filters(params)
    return query