"""FastAPI application entrypoint for the telemetry bridge."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from telemetry_bridge.collector.client import CollectorClient
from telemetry_bridge.collector.client import MonitoringBackend
from telemetry_bridge.collector.client import NullCollector
from telemetry_bridge.core.config import TelemetrySettings
from telemetry_bridge.core.config import get_telemetry_settings
from telemetry_bridge.core.diagnostics import LoggingDiagnosticSink
from telemetry_bridge.core.filter import register_exception_filter
from telemetry_bridge.core.normalizer import Normalizer

logger = logging.getLogger(__name__)


def build_backend(settings: TelemetrySettings) -> MonitoringBackend:
    """Pick the monitoring backend implied by the settings."""
    if not settings.forwarding_active:
        logger.info("Telemetry forwarding disabled; failures stay local")
        return NullCollector()
    return CollectorClient(
        base_url=settings.collector_url,
        license_key=settings.license_key,
        app_name=settings.app_name,
        timeout_seconds=settings.http_timeout_seconds,
        exclude_header_prefixes=settings.exclude_header_prefixes,
        log_forwarding_enabled=settings.log_forwarding_enabled,
    )


def create_app(
    settings: TelemetrySettings | None = None,
    *,
    backend: MonitoringBackend | None = None,
) -> FastAPI:
    """Build the application with the normalizing exception filter installed."""
    settings = settings or get_telemetry_settings()
    logger.info("Configuring telemetry with settings=%s", settings.safe_for_logging())

    normalizer = Normalizer(
        backend=backend if backend is not None else build_backend(settings),
        sink=LoggingDiagnosticSink(),
    )

    app = FastAPI(title=settings.app_name)
    register_exception_filter(app, normalizer)

    @app.get("/health")
    def health() -> dict[str, str]:
        """Health check endpoint for service readiness."""
        return {"status": "ok"}

    return app


app = create_app()
