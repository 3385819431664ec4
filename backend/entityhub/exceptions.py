"""
EntityHub Backend — Custom Exception Hierarchy
================================================

What:  Defines application-specific exceptions for the CRUD pipeline.
Why:   Each failure class maps to exactly one response shape, so services
       raise and the global handlers (registered in main.py) decide the HTTP
       status and envelope.
How:   Each exception class carries a message and optional context dict.
Who:   Raised by services; caught by global handlers.

Exception Hierarchy:
    EntityHubError (base)
    ├── BadRequestError   → 400 BAD_REQUEST        (missing ids / arrays)
    ├── ValidationError   → 422 VALIDATION_ERROR   (schema or identifier violation)
    ├── NotFoundError     → 404 RECORD_NOT_FOUND   (zero matching records)
    └── DatabaseError     → 500 FAILURE            (store failure, wrapped)
"""

from typing import Any, Dict, Optional


class EntityHubError(Exception):
    """
    Base exception for all EntityHub application errors.

    Attributes:
        message:  User-facing error description (returned in the API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class BadRequestError(EntityHubError):
    """
    Raised when a structural precondition fails before any validation.

    When:    Path id missing, `ids` / `data` not a non-empty list, `data` not an object.
    HTTP:    400 Bad Request

    No store call is made once this is raised.
    """

    def __init__(
        self,
        message: str = "Request parameters are invalid or missing.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ValidationError(EntityHubError):
    """
    Raised when a payload does not conform to the entity schema.

    When:    Wrong field type, malformed 24-hex identifier, malformed filter.
    HTTP:    422 Unprocessable Entity

    Example response:
        {
            "status": "VALIDATION_ERROR",
            "message": "Invalid values in parameters, \"status\" must be an integer",
            "data": null
        }
    """

    def __init__(
        self,
        message: str = "Invalid Data, Validation Failed.",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(EntityHubError):
    """
    Raised when a by-identifier or by-filter operation matched nothing.

    HTTP:    404 Not Found

    Not a failure of the operation itself: the store answered, it just had
    no record for the criteria. The service converts `None` / `0` into this.
    """

    def __init__(
        self,
        resource: str = "record",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = "Record(s) not found with specified criteria."
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(EntityHubError):
    """
    Raised when a store operation fails unexpectedly.

    What:    Connection lost, constraint violation, unsupported query operator.
    HTTP:    500 Internal Server Error

    The message carries the underlying store message; the original exception
    type is kept in context for the server log.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
