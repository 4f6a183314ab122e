"""Translate a parsed list query into a MongoDB find query."""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorCursor
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pymongo import ASCENDING, DESCENDING

from models.query import ExpenseQuery

logger = logging.getLogger(__name__)

FIELD_ALIASES = {"id": "_id"}
NUMERIC_FIELDS = frozenset({"amount"})
DATETIME_FIELDS = frozenset({"incurred", "created", "updated"})
DEFAULT_SORT: List[Tuple[str, int]] = [("created", DESCENDING)]

_datetime_adapter = TypeAdapter(datetime)


def storage_field(field: str) -> Optional[str]:
    """
    Map a client field name to its stored path, or None when MongoDB would reject it
    (empty name, empty path segment, or a segment starting with "$").
    """
    field = field.strip()
    segments = field.split(".")
    if not field or any(not segment or segment.startswith("$") for segment in segments):
        return None
    return FIELD_ALIASES.get(field, field)


def _without_path_collisions(fields: List[str]) -> List[str]:
    # A projection may not name both a path and one of its sub-paths
    kept: List[str] = []
    for field in fields:
        if any(field == other or field.startswith(other + ".") for other in kept):
            continue
        kept = [other for other in kept if not other.startswith(field + ".")]
        kept.append(field)
    return kept


def coerce_value(field: str, value: Any) -> Any:
    """
    Convert a query-string value to the stored type of `field`.
    Values that cannot be converted are returned unchanged so they simply match nothing.
    """
    if field == "_id":
        if isinstance(value, ObjectId):
            return value
        try:
            return ObjectId(str(value))
        except (InvalidId, TypeError):
            return value
    if field in NUMERIC_FIELDS:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        try:
            return float(value)
        except (TypeError, ValueError):
            return value
    if field in DATETIME_FIELDS:
        if isinstance(value, datetime):
            return value
        try:
            return _datetime_adapter.validate_python(value)
        except PydanticValidationError:
            return value
    return value


class QueryFeatures:
    """
    Builds an unexecuted find query step by step: filter -> sort -> limit -> paginate.

    Each step reads its part of the ExpenseQuery and is a no-op when that part is empty
    (except `sort`, which falls back to newest first). Nothing touches the database until
    `find()` is called.
    """

    def __init__(self, query: ExpenseQuery):
        self.query = query
        self.filter_document: Dict[str, Any] = {}
        self.projection: Optional[Dict[str, int]] = None
        self.sort_spec: Optional[List[Tuple[str, int]]] = None
        self.skip_count = 0
        self.limit_count = 0

    def filter(self) -> "QueryFeatures":
        document: Dict[str, Any] = {}
        for clause in self.query.filters:
            field = storage_field(clause.field)
            if field is None:
                continue
            value = coerce_value(field, clause.value)
            if clause.operator == "eq":
                document[field] = value
                continue
            condition = document.get(field)
            if not isinstance(condition, dict):
                condition = {}
            condition[f"${clause.operator}"] = value
            document[field] = condition
        self.filter_document = document
        return self

    def sort(self) -> "QueryFeatures":
        spec: List[Tuple[str, int]] = []
        seen = set()
        for item in self.query.sort:
            field = storage_field(item.field)
            if field is None or field in seen:
                continue
            seen.add(field)
            spec.append((field, DESCENDING if item.direction == "desc" else ASCENDING))
        if not spec:
            spec = list(DEFAULT_SORT)
        # _id tie-break keeps page boundaries stable
        if all(field != "_id" for field, _ in spec):
            spec.append(("_id", spec[-1][1]))
        self.sort_spec = spec
        return self

    def limit(self) -> "QueryFeatures":
        """Restrict the returned fields to the `fields` list (or exclude them when all are `-` prefixed)."""
        included = []
        excluded = []
        for name in self.query.fields:
            if name.startswith("-"):
                field = storage_field(name[1:])
                target = excluded
            else:
                field = storage_field(name)
                target = included
            if field is not None:
                target.append(field)

        if included:
            self.projection = {field: 1 for field in _without_path_collisions(included)}
        elif excluded:
            self.projection = {field: 0 for field in _without_path_collisions(excluded)}
        return self

    def paginate(self) -> "QueryFeatures":
        self.skip_count = self.query.skip
        self.limit_count = self.query.limit
        return self

    def find_arguments(self) -> Dict[str, Any]:
        arguments: Dict[str, Any] = {"filter": self.filter_document, "projection": self.projection}
        if self.sort_spec:
            arguments["sort"] = self.sort_spec
        if self.skip_count:
            arguments["skip"] = self.skip_count
        if self.limit_count:
            arguments["limit"] = self.limit_count
        return arguments

    def find(self, collection: AsyncIOMotorCollection) -> AsyncIOMotorCursor:
        arguments = self.find_arguments()
        logger.debug(f"Built find query on '{collection.name}': {arguments}")
        return collection.find(arguments.pop("filter"), arguments.pop("projection"), **arguments)
