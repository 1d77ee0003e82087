"""Application configuration helpers."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os

DEFAULT_APP_NAME = "telemetry-bridge"
DEFAULT_COLLECTOR_URL = "https://collector.example.com"
DEFAULT_HTTP_TIMEOUT_SECONDS = 5.0
DEFAULT_EXCLUDE_HEADER_PREFIXES = (
    "cookie",
    "authorization",
    "proxy-authorization",
    "set-cookie",
    "x-api-key",
)

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    return float(raw)


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


def _get_list_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    return tuple(part.strip().lower() for part in raw.split(",") if part.strip())


def redact_secret(secret: str) -> str:
    """Return a non-recoverable placeholder for sensitive values."""
    if not secret:
        return "<empty>"
    return "<redacted>"


@dataclass(frozen=True)
class TelemetrySettings:
    """Runtime settings for the monitoring backend integration."""

    app_name: str
    license_key: str
    collector_url: str
    enabled: bool
    log_forwarding_enabled: bool
    http_timeout_seconds: float
    exclude_header_prefixes: tuple[str, ...]

    @property
    def forwarding_active(self) -> bool:
        """Whether failures should be sent to the collector at all."""
        return self.enabled and bool(self.license_key)

    def safe_for_logging(self) -> dict[str, str | bool | float | list[str]]:
        """Return telemetry settings safe for logs."""
        return {
            "app_name": self.app_name,
            "license_key": redact_secret(self.license_key),
            "collector_url": self.collector_url,
            "enabled": self.enabled,
            "log_forwarding_enabled": self.log_forwarding_enabled,
            "http_timeout_seconds": self.http_timeout_seconds,
            "exclude_header_prefixes": list(self.exclude_header_prefixes),
        }


@lru_cache(maxsize=1)
def get_telemetry_settings() -> TelemetrySettings:
    """Load telemetry settings from the environment."""
    return TelemetrySettings(
        app_name=os.getenv("TB_APP_NAME", DEFAULT_APP_NAME),
        license_key=os.getenv("TB_LICENSE_KEY", ""),
        collector_url=os.getenv("TB_COLLECTOR_URL", DEFAULT_COLLECTOR_URL),
        enabled=_get_bool_env("TB_ENABLED", True),
        log_forwarding_enabled=_get_bool_env("TB_LOG_FORWARDING_ENABLED", True),
        http_timeout_seconds=_get_float_env("TB_HTTP_TIMEOUT_SECONDS", DEFAULT_HTTP_TIMEOUT_SECONDS),
        exclude_header_prefixes=_get_list_env("TB_EXCLUDE_HEADER_PREFIXES", DEFAULT_EXCLUDE_HEADER_PREFIXES),
    )
