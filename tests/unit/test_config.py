"""Unit tests for telemetry settings loading."""

from __future__ import annotations

from collections.abc import Generator

import pytest

from telemetry_bridge.core.config import DEFAULT_EXCLUDE_HEADER_PREFIXES
from telemetry_bridge.core.config import TelemetrySettings
from telemetry_bridge.core.config import get_telemetry_settings
from telemetry_bridge.core.config import redact_secret


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Generator[None, None, None]:
    get_telemetry_settings.cache_clear()
    yield
    get_telemetry_settings.cache_clear()


def test_settings_defaults_disable_forwarding_without_license(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("TB_APP_NAME", "TB_LICENSE_KEY", "TB_ENABLED", "TB_EXCLUDE_HEADER_PREFIXES"):
        monkeypatch.delenv(name, raising=False)

    settings = get_telemetry_settings()

    assert settings.app_name == "telemetry-bridge"
    assert settings.license_key == ""
    assert settings.exclude_header_prefixes == DEFAULT_EXCLUDE_HEADER_PREFIXES
    assert settings.forwarding_active is False


def test_settings_are_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TB_APP_NAME", "orders-api")
    monkeypatch.setenv("TB_LICENSE_KEY", "license-123")
    monkeypatch.setenv("TB_COLLECTOR_URL", "https://collector.internal")
    monkeypatch.setenv("TB_LOG_FORWARDING_ENABLED", "off")
    monkeypatch.setenv("TB_HTTP_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("TB_EXCLUDE_HEADER_PREFIXES", "Cookie, X-Internal ,")

    settings = get_telemetry_settings()

    assert settings.app_name == "orders-api"
    assert settings.collector_url == "https://collector.internal"
    assert settings.log_forwarding_enabled is False
    assert settings.http_timeout_seconds == 2.5
    assert settings.exclude_header_prefixes == ("cookie", "x-internal")
    assert settings.forwarding_active is True


def test_invalid_boolean_flags_are_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TB_ENABLED", "sometimes")

    with pytest.raises(ValueError, match="TB_ENABLED"):
        get_telemetry_settings()


def test_disabled_flag_turns_forwarding_off_even_with_license() -> None:
    settings = TelemetrySettings(
        app_name="orders-api",
        license_key="license-123",
        collector_url="https://collector.example.com",
        enabled=False,
        log_forwarding_enabled=True,
        http_timeout_seconds=5.0,
        exclude_header_prefixes=(),
    )

    assert settings.forwarding_active is False


def test_safe_for_logging_redacts_license_key() -> None:
    settings = TelemetrySettings(
        app_name="orders-api",
        license_key="license-123",
        collector_url="https://collector.example.com",
        enabled=True,
        log_forwarding_enabled=True,
        http_timeout_seconds=5.0,
        exclude_header_prefixes=("cookie",),
    )

    safe = settings.safe_for_logging()

    assert safe["license_key"] == "<redacted>"
    assert "license-123" not in str(safe)
    assert redact_secret("") == "<empty>"
