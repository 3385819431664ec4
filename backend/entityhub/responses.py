"""
EntityHub Backend — Response Formatter
========================================

What:  Named response constructors, each mapping to one fixed status code and
       envelope shape.
Why:   Routes and exception handlers only choose WHICH constructor to call;
       the status codes and messages live here once.

    Constructor              HTTP   status
    success(data)            200    SUCCESS
    bad_request(message)     400    BAD_REQUEST
    record_not_found()       404    RECORD_NOT_FOUND
    validation_error(msg)    422    VALIDATION_ERROR
    internal_server_error()  500    FAILURE

Serialization:
    `data` goes through FastAPI's jsonable_encoder so datetimes stored by the
    facade become ISO-8601 strings.
"""

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from entityhub.middleware.request_id import request_id_var

SUCCESS_MESSAGE = "Your request is successfully executed"
BAD_REQUEST_MESSAGE = "Request parameters are invalid or missing."
NOT_FOUND_MESSAGE = "Record(s) not found with specified criteria."
VALIDATION_MESSAGE = "Invalid Data, Validation Failed."
INTERNAL_ERROR_MESSAGE = "Internal server error."


def _respond(
    status_code: int,
    status: str,
    message: str,
    data: Any = None,
    include_request_id: bool = False,
) -> JSONResponse:
    content = {"status": status, "message": message, "data": jsonable_encoder(data)}
    if include_request_id:
        content["request_id"] = request_id_var.get("")
    return JSONResponse(status_code=status_code, content=content)


def success(data: Any = None) -> JSONResponse:
    return _respond(200, "SUCCESS", SUCCESS_MESSAGE, data)


def bad_request(message: Optional[str] = None) -> JSONResponse:
    return _respond(400, "BAD_REQUEST", message or BAD_REQUEST_MESSAGE, include_request_id=True)


def record_not_found(message: Optional[str] = None) -> JSONResponse:
    return _respond(404, "RECORD_NOT_FOUND", message or NOT_FOUND_MESSAGE, include_request_id=True)


def validation_error(message: Optional[str] = None) -> JSONResponse:
    return _respond(422, "VALIDATION_ERROR", message or VALIDATION_MESSAGE, include_request_id=True)


def internal_server_error(message: Optional[str] = None) -> JSONResponse:
    return _respond(500, "FAILURE", message or INTERNAL_ERROR_MESSAGE, include_request_id=True)
