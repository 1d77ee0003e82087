"""Turn request failures into client bodies and monitoring backend records."""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Mapping
from datetime import datetime
from datetime import timezone
import logging
import traceback
from typing import Any

from fastapi import status

from telemetry_bridge.collector.client import MonitoringBackend
from telemetry_bridge.core.diagnostics import DiagnosticSink
from telemetry_bridge.core.errors import ClassifiedFailure
from telemetry_bridge.core.errors import Failure
from telemetry_bridge.core.errors import ResponsePayload
from telemetry_bridge.core.errors import reason_phrase
from telemetry_bridge.schemas.telemetry import ErrorReportingRecord
from telemetry_bridge.schemas.telemetry import LogEvent
from telemetry_bridge.schemas.telemetry import RequestContext

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"
LOG_LEVEL = "ERROR"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def error_code_from(error: str) -> str:
    """Derive a machine code such as ``NOT_FOUND`` from a phrase like ``Not Found``."""
    return "_".join(error.split()).upper()


def build_client_body(response: ResponsePayload, status_code: int | None) -> dict[str, Any]:
    """Sanitize a classified failure payload into the body returned to callers.

    The input payload is left untouched. A bare string payload becomes
    ``{"message": <string>}`` with nothing to strip or derive. For mapping
    payloads a ``message`` sequence collapses to its first element, an
    ``error`` phrase is replaced by a ``code`` and ``statusCode`` is dropped.
    """
    if isinstance(response, str):
        return {"message": response}

    body = dict(response)

    message = body.get("message")
    if isinstance(message, (list, tuple)):
        body["message"] = message[0] if message else reason_phrase(status_code)

    if "error" in body:
        error = body.pop("error")
        if isinstance(error, str) and error.strip():
            body["code"] = error_code_from(error)

    body.pop("statusCode", None)
    return body


class Normalizer:
    """Normalize a failure into ``(status_code, body)`` and forward telemetry.

    Forwarding to the local sink and to both backend channels is best effort:
    errors raised there are logged or dropped and never change the response.
    """

    def __init__(
        self,
        *,
        backend: MonitoringBackend,
        sink: DiagnosticSink,
        now_fn: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._backend = backend
        self._sink = sink
        self._now_fn = now_fn

    def handle(self, failure: Failure, context: RequestContext) -> tuple[int, dict[str, Any]]:
        classified = isinstance(failure, ClassifiedFailure)
        if classified and failure.status_code is not None:
            status_code = failure.status_code
        else:
            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

        self._record_locally(failure.error, context)
        self._forward_exception(failure.error, context, status_code)

        if not classified:
            return status_code, {"message": INTERNAL_ERROR_MESSAGE}

        body = build_client_body(failure.response, failure.status_code)
        self._forward_log_event(failure, context, status_code)
        return status_code, body

    def build_log_event(self, failure: ClassifiedFailure, context: RequestContext) -> LogEvent:
        """Build the log event from the pre-sanitization payload."""
        if failure.status_code is None:
            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        else:
            status_code = failure.status_code
        response = failure.response
        message = dict(response) if isinstance(response, Mapping) else response
        return LogEvent(
            message=message,
            level=LOG_LEVEL,
            error=failure.error,
            status_code=status_code,
            timestamp=self._now_fn().isoformat(),
            path=context.url,
        )

    def _record_locally(self, error: BaseException, context: RequestContext) -> None:
        try:
            trace = None
            if error.__traceback__ is not None:
                trace = "".join(traceback.format_exception(type(error), error, error.__traceback__))
            self._sink.log(f"{context.method} {context.url} failed: {type(error).__name__}: {error}", trace)
        except Exception:
            pass

    def _forward_exception(self, error: BaseException, context: RequestContext, status_code: int) -> None:
        try:
            record = ErrorReportingRecord(
                error=error,
                request=context,
                response_status=status_code,
                attributes={
                    "http.statusCode": status_code,
                    "request.method": context.method,
                    "request.uri": context.url,
                    "error.class": type(error).__name__,
                },
            )
            self._backend.report_exception(record)
        except Exception:
            logger.warning("Failed to forward exception for %s", context.url, exc_info=True)

    def _forward_log_event(self, failure: ClassifiedFailure, context: RequestContext, status_code: int) -> None:
        try:
            self._backend.report_log_event(self.build_log_event(failure, context))
        except Exception:
            logger.warning("Failed to forward log event for %s status=%s", context.url, status_code, exc_info=True)
