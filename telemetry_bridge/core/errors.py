"""Failure variants and the application HTTP error family."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any
from typing import Union

from fastapi import status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

ResponsePayload = Union[Mapping[str, Any], str]


def reason_phrase(status_code: int | None) -> str:
    """Return the standard reason phrase for a status, or a generic one."""
    if status_code is None:
        return HTTPStatus.INTERNAL_SERVER_ERROR.phrase
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def http_error_payload(status_code: int, message: Any) -> dict[str, Any]:
    """Build the framework-style payload carried by classified failures."""
    return {
        "statusCode": status_code,
        "message": message,
        "error": reason_phrase(status_code),
    }


class HttpError(Exception):
    """Base application exception carrying a status and a response payload."""

    def __init__(self, response: ResponsePayload, status_code: int | None) -> None:
        super().__init__(response if isinstance(response, str) else response.get("message", ""))
        self.response = response
        self.status_code = status_code


class _StandardHttpError(HttpError):
    default_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | list[str] | None = None) -> None:
        resolved = self.default_message if message is None else message
        super().__init__(http_error_payload(self.default_status, resolved), self.default_status)


class BadRequestError(_StandardHttpError):
    """Request input was rejected."""

    default_status = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class UnauthorizedError(_StandardHttpError):
    default_status = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class ForbiddenError(_StandardHttpError):
    default_status = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(_StandardHttpError):
    """Convenience exception for missing resources."""

    default_status = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(_StandardHttpError):
    default_status = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class InternalServerError(_StandardHttpError):
    pass


@dataclass(frozen=True)
class ClassifiedFailure:
    """A failure that already knows its status and response payload."""

    error: BaseException
    status_code: int | None
    response: ResponsePayload


@dataclass(frozen=True)
class UnclassifiedFailure:
    """Any other failure; surfaced to callers as an opaque internal error."""

    error: BaseException


Failure = Union[ClassifiedFailure, UnclassifiedFailure]


def classify_exception(exc: BaseException) -> Failure:
    """Map a raised exception onto one of the two failure variants."""
    if isinstance(exc, HttpError):
        return ClassifiedFailure(error=exc, status_code=exc.status_code, response=exc.response)

    if isinstance(exc, RequestValidationError):
        return ClassifiedFailure(
            error=exc,
            status_code=status.HTTP_400_BAD_REQUEST,
            response=http_error_payload(status.HTTP_400_BAD_REQUEST, _validation_messages(exc)),
        )

    if isinstance(exc, StarletteHTTPException):
        detail = exc.detail
        if isinstance(detail, Mapping):
            response: ResponsePayload = dict(detail)
        elif isinstance(detail, (list, tuple)) and detail:
            response = http_error_payload(exc.status_code, [str(item) for item in detail])
        else:
            message = str(detail) if detail else reason_phrase(exc.status_code)
            response = http_error_payload(exc.status_code, message)
        return ClassifiedFailure(error=exc, status_code=exc.status_code, response=response)

    return UnclassifiedFailure(error=exc)


_LOCATION_SOURCES = frozenset({"body", "query", "path", "header", "cookie"})


def _validation_messages(exc: RequestValidationError) -> list[str]:
    """Render each validation issue as ``"<field>: <issue>"``, dropping the request source."""
    messages: list[str] = []
    for issue in exc.errors():
        location = issue.get("loc", ())
        if not isinstance(location, (tuple, list)):
            location = (location,)
        field = ".".join(str(part) for part in location if part not in _LOCATION_SOURCES)
        if not field:
            field = str(location[0]) if location else "request"
        messages.append(f"{field}: {issue.get('msg', 'Invalid value')}")
    return messages
