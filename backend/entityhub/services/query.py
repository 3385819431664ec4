"""
EntityHub Backend — Filter / Query Normalizer
===============================================

What:  Turns a raw request filter and raw list options into immutable query
       structures the data-access facade understands.
Why:   Routes receive loose JSON; the facade wants a small closed vocabulary.
       Keeping the interpretation here means the facade never inspects
       request bodies and the service never builds SQL.
How:   For each field in the raw filter:
           literal  → Condition(op="eq")    equality
           list     → Condition(op="in")    value in set
           object   → Condition(op="expr")  store-native comparison, passed through
       Top-level `$and` / `$or` / `$nor` lists are normalized recursively.
       `id` is an alias of `_id`.

The normalizer checks structural shape only; it does not know which comparison
operators the store supports. The caller's objects are never mutated.
"""

import copy
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple

from entityhub.config import settings
from entityhub.exceptions import ValidationError
from entityhub.validation.common import check_options

# Top-level logical operators and their Condition op names
LOGICAL_OPERATORS = {"$and": "and", "$or": "or", "$nor": "nor"}

# Accepted sort directions (mongo-style numbers and words)
_ASCENDING = {1, "1", "asc", "ascending"}
_DESCENDING = {-1, "-1", "desc", "descending"}


@dataclass(frozen=True)
class Condition:
    """
    One normalized filter condition.

    Attributes:
        field:  column name (`_id` for identifier filters); the logical operator
                key for group conditions
        op:     "eq" | "in" | "expr" | "and" | "or" | "nor"
        value:  literal (eq), tuple (in), operator dict (expr), or a tuple of
                FilterQuery (and / or / nor)
    """
    field: str
    op: str
    value: Any


FilterQuery = Tuple[Condition, ...]


@dataclass(frozen=True)
class PageOptions:
    """
    Normalized pagination / selection controls.

    Attributes:
        page:        1-based page number
        limit:       page size
        offset:      explicit row offset (overrides page when set)
        pagination:  False returns every match as one page
        sort:        ((field, descending), ...) in priority order
        select:      fields to include (identifier always included)
        exclude:     fields to leave out
        populate:    accepted for compatibility; no relations are modelled
    """
    page: int = 1
    limit: int = 10
    offset: Optional[int] = None
    pagination: bool = True
    sort: Tuple[Tuple[str, bool], ...] = ()
    select: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()
    populate: Tuple[Any, ...] = ()


# ══════════════════════════════════════════════════════════════════════════
# Filters
# ══════════════════════════════════════════════════════════════════════════

def normalize_filter(raw_filter: Optional[Dict[str, Any]]) -> FilterQuery:
    """
    Build a FilterQuery from a raw filter mapping.

    Examples:
        {"status": [1, 2]}            → (Condition("status", "in", (1, 2)),)
        {"title": "x"}                → (Condition("title", "eq", "x"),)
        {"dueDate": {"$lt": "2024"}}  → (Condition("dueDate", "expr", {"$lt": "2024"}),)
        {"id": "65a..."}              → (Condition("_id", "eq", "65a..."),)

    Raises:
        ValidationError: the filter (or a logical clause) is not an object
    """
    if raw_filter is None:
        return ()
    if not isinstance(raw_filter, dict):
        raise ValidationError(message='"query" must be of type object')

    conditions = []
    for key, value in raw_filter.items():
        if key in LOGICAL_OPERATORS:
            if not isinstance(value, list) or not value:
                raise ValidationError(message=f'"{key}" must be a non-empty array')
            clauses = tuple(normalize_filter(clause) for clause in value)
            conditions.append(Condition(field=key, op=LOGICAL_OPERATORS[key], value=clauses))
            continue

        field = "_id" if key == "id" else key
        if isinstance(value, list):
            conditions.append(Condition(field=field, op="in", value=tuple(copy.deepcopy(value))))
        elif isinstance(value, dict):
            conditions.append(Condition(field=field, op="expr", value=copy.deepcopy(value)))
        else:
            conditions.append(Condition(field=field, op="eq", value=value))
    return tuple(conditions)


def by_id(record_id: str) -> FilterQuery:
    """FilterQuery matching one identifier."""
    return (Condition(field="_id", op="eq", value=record_id),)


def by_ids(record_ids: Iterable[str]) -> FilterQuery:
    """FilterQuery matching any of the given identifiers."""
    return (Condition(field="_id", op="in", value=tuple(record_ids)),)


# ══════════════════════════════════════════════════════════════════════════
# Options
# ══════════════════════════════════════════════════════════════════════════

def build_page_options(
    options: Optional[Dict[str, Any]] = None,
    select: Any = None,
    populate: Any = None,
) -> PageOptions:
    """
    Build PageOptions from the raw `options` object.

    Top-level `select` / `populate` from the request body are used when
    `options` does not carry its own.

    Raises:
        ValidationError: an option fails the ListOptions rules (for example a
                         non-finite page size) or a sort direction is unreadable
    """
    options = options or {}
    errors = check_options(options)
    if errors:
        raise ValidationError(message=", ".join(errors), field="options")
    raw_select = options.get("select", options.get("projection", select))
    include, exclude = _parse_select(raw_select)
    raw_populate = options.get("populate", populate)

    offset = options.get("offset")
    return PageOptions(
        page=int(options.get("page", 1)),
        limit=int(options.get("limit", settings.default_page_limit)),
        offset=int(offset) if offset is not None else None,
        pagination=bool(options.get("pagination", True)),
        sort=_parse_sort(options.get("sort")),
        select=include,
        exclude=exclude,
        populate=_as_tuple(raw_populate),
    )


def _as_tuple(value: Any) -> Tuple[Any, ...]:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return (value,)


def _split_fields(text: str) -> Tuple[str, ...]:
    return tuple(part for part in text.replace(",", " ").split() if part)


def _parse_sort(raw: Any) -> Tuple[Tuple[str, bool], ...]:
    """Accepts {"field": 1 | -1 | "asc" | "desc"} or "-createdAt title"."""
    if not raw:
        return ()
    if isinstance(raw, str):
        return tuple(
            (name[1:], True) if name.startswith("-") else (name.lstrip("+"), False)
            for name in _split_fields(raw)
        )
    order = []
    for name, direction in raw.items():
        key = direction.lower() if isinstance(direction, str) else direction
        if not isinstance(key, (int, str)):
            key = None
        if key in _ASCENDING:
            order.append((name, False))
        elif key in _DESCENDING:
            order.append((name, True))
        else:
            raise ValidationError(
                message=f'"options.sort.{name}" must be one of [1, -1, asc, desc]'
            )
    return tuple(order)


def _parse_select(raw: Any) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    """Split a select / projection value into (include, exclude) field tuples."""
    if not raw:
        return (), ()
    if isinstance(raw, str):
        names = _split_fields(raw)
    elif isinstance(raw, dict):
        include = tuple(name for name, flag in raw.items() if flag)
        exclude = tuple(name for name, flag in raw.items() if not flag)
        return include, exclude
    else:
        names = tuple(str(name) for name in raw)
    include = tuple(name for name in names if not name.startswith("-"))
    exclude = tuple(name[1:] for name in names if name.startswith("-"))
    return include, exclude
