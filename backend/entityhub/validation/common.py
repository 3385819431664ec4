"""
EntityHub Backend — List Request Envelope Models
==================================================

What:  Pydantic models for the non-field keys of a list/count request body:
       `options`, `isCountOnly`, `select`, `populate`.
Why:   Every entity shares the same pagination and selection controls, so the
       rules live here once instead of in each entity schema.
How:   The body is validated against ListEnvelope (options nested as
       ListOptions). Pydantic errors are reported per key with a fixed message
       fragment. Unknown keys are allowed.

Numbers:
    page / limit / offset take finite JSON numbers only. Booleans, numeric
    strings, Infinity and NaN are rejected.
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr
from pydantic import ValidationError as PydanticValidationError

# select / projection / populate: "a b", ["a", "b"] or {"a": 1}
Selection = Union[List[Any], StrictStr, Dict[str, Any]]

LIST_OR_STRING_OR_OBJECT = "must be one of [array, string, object]"
NOT_AN_OBJECT = "must be of type object"

OPTION_MESSAGES: Dict[str, str] = {
    "page": "must be a number greater than or equal to 1",
    "limit": "must be a number greater than or equal to 1",
    "offset": "must be a number greater than or equal to 0",
    "pagination": "must be a boolean",
    "lean": "must be a boolean",
    "sort": "must be one of [object, string]",
    "select": LIST_OR_STRING_OR_OBJECT,
    "projection": LIST_OR_STRING_OR_OBJECT,
    "populate": LIST_OR_STRING_OR_OBJECT,
}

ENVELOPE_MESSAGES: Dict[str, str] = {
    "isCountOnly": "must be a boolean",
    "select": LIST_OR_STRING_OR_OBJECT,
    "populate": LIST_OR_STRING_OR_OBJECT,
}


def _count(minimum: int) -> Any:
    # Defaults are not validated, so an absent key stays None while an
    # explicit null is rejected
    return Field(default=None, ge=minimum, strict=True, allow_inf_nan=False)


class ListOptions(BaseModel):
    """The `options` object of a list request."""

    model_config = ConfigDict(extra="allow")

    page: float = _count(1)
    limit: float = _count(1)
    offset: float = _count(0)
    pagination: StrictBool = None
    lean: StrictBool = None
    sort: Union[StrictStr, Dict[str, Any]] = None
    select: Selection = None
    projection: Selection = None
    populate: Selection = None


class ListEnvelope(BaseModel):
    """Top-level keys of a list/count body besides `query` / `where`."""

    model_config = ConfigDict(extra="allow")

    options: Optional[ListOptions] = None
    isCountOnly: Optional[StrictBool] = None
    select: Optional[Selection] = None
    populate: Optional[Selection] = None


def _messages(exc: PydanticValidationError, prefix: Tuple[str, ...] = ()) -> List[str]:
    """One message per offending key, in field order."""
    messages: List[str] = []
    for error in exc.errors():
        loc = prefix + tuple(str(part) for part in error["loc"])
        if loc and loc[0] == "options":
            if len(loc) == 1:
                message = f'"options" {NOT_AN_OBJECT}'
            else:
                message = f'"options.{loc[1]}" {OPTION_MESSAGES[loc[1]]}'
        elif loc:
            message = f'"{loc[0]}" {ENVELOPE_MESSAGES[loc[0]]}'
        else:
            message = f'"value" {NOT_AN_OBJECT}'
        if message not in messages:
            messages.append(message)
    return messages


def check_options(options: Any) -> List[str]:
    """Return violation messages for an `options` object (empty list when valid)."""
    try:
        ListOptions.model_validate(options)
    except PydanticValidationError as e:
        return _messages(e, prefix=("options",))
    return []


def check_envelope(body: Dict[str, Any]) -> List[str]:
    """Return violation messages for the envelope keys of a list/count body."""
    try:
        ListEnvelope.model_validate(body)
    except PydanticValidationError as e:
        return _messages(e)
    return []
