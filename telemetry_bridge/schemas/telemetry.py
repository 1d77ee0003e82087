"""Pydantic schemas for records handed to the monitoring backend."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_serializer


def describe_error(error: BaseException) -> dict[str, str]:
    """Return a JSON-safe summary of an exception."""
    return {"class": type(error).__name__, "message": str(error)}


class RequestContext(BaseModel):
    """Read-only snapshot of the inbound request used for attribution."""

    model_config = ConfigDict(frozen=True)

    method: str
    url: str
    headers: dict[str, str] = Field(default_factory=dict)


class ErrorReportingRecord(BaseModel):
    """Raw exception plus request/response references for the exception channel."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    error: BaseException
    request: RequestContext
    response_status: int
    attributes: dict[str, Any] = Field(default_factory=dict)

    @field_serializer("error")
    def _serialize_error(self, error: BaseException) -> dict[str, str]:
        return describe_error(error)


class LogEvent(BaseModel):
    """Structured log event for the log-event channel."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, populate_by_name=True)

    message: Any
    level: str
    error: BaseException
    status_code: int = Field(alias="statusCode")
    timestamp: str
    path: str

    @field_serializer("error")
    def _serialize_error(self, error: BaseException) -> dict[str, str]:
        return describe_error(error)
