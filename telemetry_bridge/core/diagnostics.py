"""Local diagnostic sink backed by the standard logging module."""

from __future__ import annotations

import logging
from typing import Protocol


class DiagnosticSink(Protocol):
    def log(self, message: str, trace: str | None = None) -> None: ...


class LoggingDiagnosticSink:
    """Write failures and their stack traces to a local logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("telemetry_bridge.diagnostics")

    def log(self, message: str, trace: str | None = None) -> None:
        if trace:
            self._logger.error("%s\n%s", message, trace)
        else:
            self._logger.error("%s", message)
