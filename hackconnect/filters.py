"""
Typed list filters.

Query parameters of the form ``field=value`` or ``field[op]=value`` are
parsed into ``Filter`` values and checked against an allow-list of fields
and operators before they ever reach a query. Sorting and pagination live
here too since every list endpoint shares them, along with field selection.
"""

import operator
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from .config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from .errors import BadRequest

RESERVED_PARAMS = {"select", "sort", "page", "limit"}

COMPARISON_OPS = frozenset({"eq", "gt", "gte", "lt", "lte", "in"})
RANGE_OPS = frozenset({"gt", "gte", "lt", "lte"})
EQUALITY_OPS = frozenset({"eq"})
# For list-valued fields: eq means "contains", in means "contains any of"
MEMBERSHIP_OPS = frozenset({"eq", "in"})

_OPERATORS: Dict[str, Callable[[Any, Any], Any]] = {
    "eq": operator.eq,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
    "in": lambda column, values: column.in_(values),
}

_PARAM_PATTERN = re.compile(r"^(?P<field>[a-z_]+)(?:\[(?P<op>[a-z]+)\])?$")


def to_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise ValueError(f"not a boolean: {raw}")


def to_datetime(raw: str) -> datetime:
    return datetime.fromisoformat(raw.strip())


@dataclass(frozen=True)
class FieldSpec:
    coerce: Callable[[str], Any]
    operators: FrozenSet[str]


@dataclass(frozen=True)
class Filter:
    field: str
    op: str
    value: Any


@dataclass(frozen=True)
class Page:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def links(self, total: int) -> Dict[str, Dict[str, int]]:
        pagination = {}
        if self.page * self.limit < total:
            pagination["next"] = {"page": self.page + 1, "limit": self.limit}
        if self.offset > 0:
            pagination["prev"] = {"page": self.page - 1, "limit": self.limit}
        return pagination


def parse_filters(params: Iterable[Tuple[str, str]], fields: Dict[str, FieldSpec]) -> List[Filter]:
    """Build filters from raw query parameters, rejecting anything not allow-listed."""
    filters = []
    for key, raw in params:
        if key in RESERVED_PARAMS:
            continue

        match = _PARAM_PATTERN.match(key)
        if not match or match.group("field") not in fields:
            raise BadRequest(f"Unknown filter field: {key}")

        field = match.group("field")
        op = match.group("op") or "eq"
        spec = fields[field]
        if op not in spec.operators:
            raise BadRequest(f"Operator '{op}' is not allowed for field '{field}'")

        try:
            if op == "in":
                value = [spec.coerce(part) for part in raw.split(",") if part.strip()]
            else:
                value = spec.coerce(raw)
        except ValueError:
            raise BadRequest(f"Invalid value for {key}: {raw}")

        filters.append(Filter(field=field, op=op, value=value))
    return filters


def apply_filters(statement, model, filters: List[Filter]):
    for item in filters:
        column = getattr(model, item.field)
        statement = statement.where(_OPERATORS[item.op](column, item.value))
    return statement


def parse_sort(sort: Optional[str], model, allowed: Iterable[str], default: str) -> list:
    """Turn ``"name,-created_at"`` into ORDER BY clauses."""
    allowed = set(allowed)
    clauses = []
    for part in (sort or default).split(","):
        part = part.strip()
        if not part:
            continue
        descending = part.startswith("-")
        name = part.lstrip("-")
        if name not in allowed:
            raise BadRequest(f"Cannot sort by '{name}'")
        column = getattr(model, name)
        clauses.append(column.desc() if descending else column.asc())
    return clauses


def parse_page(page: Optional[int], limit: Optional[int]) -> Page:
    page = 1 if page is None else page
    limit = DEFAULT_PAGE_SIZE if limit is None else limit
    if page < 1:
        raise BadRequest("page must be at least 1")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise BadRequest(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    return Page(page=page, limit=limit)


def parse_select(select: Optional[str], allowed: Iterable[str], always: Iterable[str] = ("id",)) -> Optional[Set[str]]:
    """Turn ``"name,description"`` into the set of response fields to keep."""
    if not select:
        return None
    allowed = set(allowed)
    fields = {part.strip() for part in select.split(",") if part.strip()}
    unknown = sorted(fields - allowed)
    if unknown:
        raise BadRequest(f"Cannot select field(s): {', '.join(unknown)}")
    return fields | set(always)
