"""Typed representation of the list-expenses query string."""
import re
from typing import Any, Iterable, List, Literal, Mapping, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

RESERVED_PARAMS = frozenset({"sort", "fields", "page", "limit"})
FILTER_OPERATORS = ("gte", "gt", "lte", "lt")

# field[op]=value, e.g. amount[gte]=100
_OPERATOR_KEY = re.compile(r"^(?P<field>[^\[\]]+)\[(?P<op>gte|gt|lte|lt)\]$")

QueryParams = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


class FilterClause(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    operator: Literal["eq", "gte", "gt", "lte", "lt"] = "eq"
    value: Any


class SortField(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    direction: Literal["asc", "desc"] = "asc"


class ExpenseQuery(BaseModel):
    """Filter clauses, sort order, projected fields and pagination for a list request."""
    filters: List[FilterClause] = Field(default_factory=list)
    sort: List[SortField] = Field(default_factory=list)
    fields: List[str] = Field(default_factory=list)
    page: int = 1
    limit: int = 10

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def _split_csv(value: Any) -> List[str]:
    return [part.strip() for part in str(value).split(",") if part.strip()]


def _positive_int(value: Any, default: int) -> int:
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def _is_filterable(field: str) -> bool:
    # Top-level "$" keys would be read as MongoDB operators
    return bool(field) and not field.startswith("$")


def parse_sort(value: Any) -> List[SortField]:
    sort = []
    for part in _split_csv(value):
        if part.startswith("-"):
            field, direction = part[1:].strip(), "desc"
        else:
            field, direction = part.lstrip("+").strip(), "asc"
        if field:
            sort.append(SortField(field=field, direction=direction))
    return sort


def parse_query_params(params: QueryParams, default_limit: int = 10, max_limit: int = 100) -> ExpenseQuery:
    """
    Parse raw query parameters into an ExpenseQuery.

    Accepts a mapping or a sequence of (key, value) pairs; for repeated keys the last one wins for
    control parameters. Malformed `page`/`limit` values fall back to 1 and `default_limit`.
    """
    items = params.items() if isinstance(params, Mapping) else params
    control = {}
    filters: List[FilterClause] = []

    for key, value in items:
        key = str(key).strip()
        if key in RESERVED_PARAMS:
            control[key] = value
            continue

        match = _OPERATOR_KEY.match(key)
        if match:
            field = match.group("field").strip()
            if _is_filterable(field):
                filters.append(FilterClause(field=field, operator=match.group("op"), value=value))
        elif isinstance(value, Mapping):
            # Nested form {"amount": {"gte": 100}} from programmatic callers
            if _is_filterable(key):
                for op, operand in value.items():
                    if op in FILTER_OPERATORS:
                        filters.append(FilterClause(field=key, operator=op, value=operand))
        elif _is_filterable(key):
            filters.append(FilterClause(field=key, value=value))

    limit = _positive_int(control.get("limit"), default_limit)
    return ExpenseQuery(
        filters=filters,
        sort=parse_sort(control["sort"]) if "sort" in control else [],
        fields=_split_csv(control["fields"]) if "fields" in control else [],
        page=_positive_int(control.get("page"), 1),
        limit=min(limit, max_limit),
    )
