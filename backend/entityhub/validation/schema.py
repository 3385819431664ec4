"""
EntityHub Backend — Schema Validation Engine
==============================================

What:  Declarative field constraints and the one routine that checks a payload
       against them.
Why:   Entities describe WHAT is allowed (a mapping of field → FieldSpec);
       this module is the only place that knows HOW to check it.
How:   Each EntitySchema builds one pydantic model per schema kind with
       `create_model` (fields aliased to their wire names, unknown keys
       ignored). `validate(payload, schema, kind)` runs that model over the
       declared fields present in the payload and turns every pydantic error
       into a message fragment. No I/O, no mutation of the payload.

Schema Kinds:
    CREATE  declared entity fields
    UPDATE  CREATE fields plus the `_id` identifier
    FILTER  a list/count request body: `query` / `where` objects whose fields
            accept an array (one-of), an object (opaque comparison expression)
            or a scalar of the field's kind, plus the envelope keys checked in
            validation/common.py. Array fields accept only {"$exists": ...}.

Type Conformance:
    string     str
    integer    finite int or integral float (not bool)
    number     finite int or float (not bool)
    boolean    bool
    date       anything pydantic parses as a datetime (ISO-8601 strings,
               unix timestamps), never a bool
    object_id  str matching ^[0-9a-fA-F]{24}$
    array      list with any items
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Mapping, Optional, Type, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictBool,
    StringConstraints,
    TypeAdapter,
    create_model,
)
from pydantic import ValidationError as PydanticValidationError

from entityhub.validation.common import check_envelope

OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")

# Request keys holding a field filter inside a list/count body
FILTER_KEYS = ("query", "where")


class FieldKind(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    OBJECT_ID = "object_id"
    ARRAY = "array"


class SchemaKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    FILTER = "filter"


@dataclass(frozen=True)
class FieldSpec:
    """
    Constraint for one field.

    Attributes:
        kind:         expected value kind
        nullable:     accept None
        allow_empty:  accept "" (even for non-string kinds such as dates)
    """
    kind: FieldKind
    nullable: bool = False
    allow_empty: bool = False


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    message: str = ""


@dataclass(frozen=True)
class EntitySchema:
    """
    Declarative schema of one entity.

    `fields` lists the entity attributes; the identifier variants for update
    and filter are derived here so entity modules only declare their attributes.
    The pydantic model for each kind is built on first use and kept.
    """
    fields: Mapping[str, FieldSpec] = field(default_factory=dict)
    _models: Dict[SchemaKind, Type[BaseModel]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def fields_for(self, kind: SchemaKind) -> Dict[str, FieldSpec]:
        declared = dict(self.fields)
        if kind in (SchemaKind.UPDATE, SchemaKind.FILTER):
            declared["_id"] = FieldSpec(FieldKind.OBJECT_ID)
        if kind == SchemaKind.FILTER:
            declared["id"] = FieldSpec(FieldKind.OBJECT_ID)
        return declared

    def model_for(self, kind: SchemaKind) -> Type[BaseModel]:
        if kind not in self._models:
            self._models[kind] = _build_model(self.fields_for(kind), kind)
        return self._models[kind]


# ══════════════════════════════════════════════════════════════════════════
# Field Types
# ══════════════════════════════════════════════════════════════════════════

def _reject_bool(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError("a boolean is not a date")
    return value


DateValue = Annotated[datetime, BeforeValidator(_reject_bool)]

KIND_TYPES: Dict[FieldKind, Any] = {
    FieldKind.STRING: Annotated[str, StringConstraints(strict=True, min_length=1)],
    FieldKind.INTEGER: Annotated[float, Field(strict=True, allow_inf_nan=False, multiple_of=1)],
    FieldKind.NUMBER: Annotated[float, Field(strict=True, allow_inf_nan=False)],
    FieldKind.BOOLEAN: StrictBool,
    FieldKind.DATE: DateValue,
    FieldKind.OBJECT_ID: Annotated[
        str, StringConstraints(strict=True, pattern=OBJECT_ID_PATTERN.pattern)
    ],
    FieldKind.ARRAY: Annotated[List[Any], Field(strict=True)],
}

KIND_MESSAGES: Dict[FieldKind, str] = {
    FieldKind.STRING: "must be a string",
    FieldKind.INTEGER: "must be a number",
    FieldKind.NUMBER: "must be a number",
    FieldKind.BOOLEAN: "must be a boolean",
    FieldKind.DATE: "must be a valid date",
    FieldKind.OBJECT_ID: "must be a string",
    FieldKind.ARRAY: "must be an array",
}

FILTER_MISMATCH = "does not match any of the allowed types"
ARRAY_FILTER_MISMATCH = "only supports the $exists operator"


class ExistsFilter(BaseModel):
    """The one filter form an array field takes: {"$exists": true | false}."""

    model_config = ConfigDict(extra="forbid")

    exists: Any = Field(alias="$exists")


def _annotation(spec: FieldSpec, kind: SchemaKind) -> Any:
    annotation = KIND_TYPES[spec.kind]
    if kind == SchemaKind.FILTER:
        if spec.kind == FieldKind.ARRAY:
            annotation = ExistsFilter
        else:
            annotation = Union[List[Any], Dict[str, Any], annotation]
    return Optional[annotation] if spec.nullable else annotation


def _build_model(declared: Mapping[str, FieldSpec], kind: SchemaKind) -> Type[BaseModel]:
    # Wire names such as `_id` are not valid pydantic field names; use aliases
    definitions = {
        f"field_{index}": (_annotation(spec, kind), Field(default=None, alias=name))
        for index, (name, spec) in enumerate(declared.items())
    }
    return create_model(
        f"{kind.value.title()}Payload",
        __config__=ConfigDict(extra="ignore"),
        **definitions,
    )


# ══════════════════════════════════════════════════════════════════════════
# Value Checks
# ══════════════════════════════════════════════════════════════════════════

_DATE_ADAPTER = TypeAdapter(DateValue)


def is_object_id(value: Any) -> bool:
    """True when `value` is a 24-character hexadecimal identifier string."""
    return isinstance(value, str) and bool(OBJECT_ID_PATTERN.match(value))


def coerce_date(value: Any) -> Optional[datetime]:
    """
    Convert a date-like value into a datetime with pydantic's datetime parsing.

    Accepts datetime, ISO-8601 strings (a trailing "Z" means UTC) and unix
    timestamps (pydantic reads values above 2e10 as milliseconds). "" and None
    become None.

    Raises:
        ValueError: the value cannot be read as a date (pydantic's
                    ValidationError is a ValueError)
    """
    if value is None or value == "":
        return None
    return _DATE_ADAPTER.validate_python(value)


def _fragment(error: Dict[str, Any], spec: FieldSpec) -> str:
    """Message fragment for one pydantic error on a create / update field."""
    if error["input"] is None:
        return "must not be null"
    if error["type"] == "string_too_short":
        return "is not allowed to be empty"
    if error["type"] == "string_pattern_mismatch":
        return (
            f'with value "{error["input"]}" fails to match the required pattern: '
            f"{OBJECT_ID_PATTERN.pattern}"
        )
    if error["type"] == "multiple_of":
        return "must be an integer"
    return KIND_MESSAGES[spec.kind]


def _present(payload: Mapping[str, Any], declared: Mapping[str, FieldSpec]) -> Dict[str, Any]:
    """Declared fields present in the payload; "" is dropped where it is allowed."""
    return {
        name: value
        for name, value in payload.items()
        if name in declared and not (declared[name].allow_empty and value == "")
    }


def _field_errors(
    values: Dict[str, Any],
    model: Type[BaseModel],
    declared: Mapping[str, FieldSpec],
    key: Optional[str] = None,
) -> List[str]:
    """Run `model` over `values`; `key` names the filter object when checking one."""
    try:
        model.model_validate(values)
    except PydanticValidationError as e:
        messages: List[str] = []
        for error in e.errors():
            name = str(error["loc"][0])
            spec = declared[name]
            if key is None:
                message = f'"{name}" {_fragment(error, spec)}'
            elif spec.kind == FieldKind.ARRAY:
                message = f'"{key}.{name}" {ARRAY_FILTER_MISMATCH}'
            else:
                message = f'"{key}.{name}" {FILTER_MISMATCH}'
            if message not in messages:
                messages.append(message)
        return messages
    return []


# ══════════════════════════════════════════════════════════════════════════
# Entry Point
# ══════════════════════════════════════════════════════════════════════════

def validate(payload: Any, schema: EntitySchema, kind: SchemaKind) -> ValidationResult:
    """
    Validate `payload` against `schema` for the given schema kind.

    Args:
        payload: attributes to validate (create / update) or a list/count
                 request body (filter)
        schema:  the entity's declarative schema
        kind:    CREATE, UPDATE or FILTER

    Returns:
        ValidationResult(is_valid=True) when every declared field present in
        the payload conforms; otherwise is_valid=False and a message listing
        every violation (joined with ", ").

    Example:
        >>> validate({"status": "done"}, TASK_SCHEMA, SchemaKind.CREATE)
        ValidationResult(is_valid=False, message='"status" must be a number')
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        return ValidationResult(is_valid=False, message='"value" must be of type object')

    declared = schema.fields_for(kind)
    model = schema.model_for(kind)
    errors: List[str] = []

    if kind == SchemaKind.FILTER:
        for key in FILTER_KEYS:
            errors.extend(_filter_errors(payload.get(key), key, declared, model))
        errors.extend(check_envelope(payload))
    else:
        errors.extend(_field_errors(_present(payload, declared), model, declared))

    if errors:
        return ValidationResult(is_valid=False, message=", ".join(errors))
    return ValidationResult(is_valid=True)


def _filter_errors(
    raw_filter: Any,
    key: str,
    declared: Mapping[str, FieldSpec],
    model: Type[BaseModel],
) -> List[str]:
    if raw_filter is None:
        return []
    if not isinstance(raw_filter, dict):
        return [f'"{key}" must be of type object']
    return _field_errors(_present(raw_filter, declared), model, declared, key)


def validate_filter(raw_filter: Any, schema: EntitySchema, key: str) -> ValidationResult:
    """
    Validate one filter object on its own, reported under `key`
    (for example the `filter` of a bulk update).
    """
    declared = schema.fields_for(SchemaKind.FILTER)
    errors = _filter_errors(raw_filter, key, declared, schema.model_for(SchemaKind.FILTER))
    if errors:
        return ValidationResult(is_valid=False, message=", ".join(errors))
    return ValidationResult(is_valid=True)
