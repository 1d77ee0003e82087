"""HTTP client for the monitoring backend's exception and log-event channels."""

from __future__ import annotations

from collections.abc import Iterable
from collections.abc import Mapping
import traceback
from typing import Any
from typing import Protocol

import requests

from telemetry_bridge.schemas.telemetry import ErrorReportingRecord
from telemetry_bridge.schemas.telemetry import LogEvent


class MonitoringBackend(Protocol):
    """Capabilities the normalizer needs from a monitoring backend."""

    def report_exception(self, record: ErrorReportingRecord) -> None: ...

    def report_log_event(self, event: LogEvent) -> None: ...


class CollectorClientError(RuntimeError):
    """Base error raised by collector client operations."""


class CollectorRequestError(CollectorClientError):
    """Raised when a collector request fails in transport or is rejected."""


class NullCollector:
    """Backend used when telemetry is disabled; discards every record."""

    def report_exception(self, record: ErrorReportingRecord) -> None:
        return None

    def report_log_event(self, event: LogEvent) -> None:
        return None


def filter_headers(headers: Mapping[str, str], exclude_prefixes: Iterable[str]) -> dict[str, str]:
    """Drop headers whose lowercase name starts with any excluded prefix."""
    prefixes = tuple(prefix.lower() for prefix in exclude_prefixes)
    return {name: value for name, value in headers.items() if not name.lower().startswith(prefixes)}


class CollectorClient:
    """Send exception records and log events to a collector, at most once each."""

    def __init__(
        self,
        *,
        base_url: str,
        license_key: str,
        app_name: str,
        timeout_seconds: float = 5.0,
        exclude_header_prefixes: Iterable[str] = (),
        log_forwarding_enabled: bool = True,
        session: requests.Session | None = None,
    ) -> None:
        normalized = base_url.rstrip("/")
        if not normalized:
            raise ValueError("base_url is required")
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")

        self._base_url = normalized
        self._license_key = license_key
        self._app_name = app_name
        self._timeout_seconds = timeout_seconds
        self._exclude_header_prefixes = tuple(exclude_header_prefixes)
        self._log_forwarding_enabled = log_forwarding_enabled
        self._session = session or requests.Session()

    def report_exception(self, record: ErrorReportingRecord) -> None:
        """Forward a raw exception with its request and response references."""
        error = record.error
        payload = {
            "entity.name": self._app_name,
            "error.class": type(error).__name__,
            "error.message": str(error),
            "error.stack": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
            "request": {
                "method": record.request.method,
                "url": record.request.url,
                "headers": filter_headers(record.request.headers, self._exclude_header_prefixes),
            },
            "response": {"status": record.response_status},
            "attributes": dict(record.attributes),
        }
        self._post("/v1/errors", payload)

    def report_log_event(self, event: LogEvent) -> None:
        """Forward a structured log event unless log forwarding is switched off."""
        if not self._log_forwarding_enabled:
            return
        payload = event.model_dump(mode="json", by_alias=True)
        payload["entity.name"] = self._app_name
        self._post("/v1/logs", payload)

    def _post(self, path: str, payload: dict[str, Any]) -> None:
        url = f"{self._base_url}{path}"
        try:
            response = self._session.post(
                url,
                headers=self._headers(),
                json=payload,
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as exc:
            raise CollectorRequestError(f"Collector request to {path} failed") from exc

        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise CollectorRequestError(
                f"Collector rejected {path} with status {response.status_code}",
            ) from exc

    def _headers(self) -> dict[str, str]:
        return {
            "Api-Key": self._license_key,
            "Content-Type": "application/json",
            "User-Agent": "telemetry-bridge/0.1",
        }
