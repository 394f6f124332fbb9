"""Unit tests for dispatcher configuration."""

import pytest
from pydantic import ValidationError

from auth_dispatch.config import DispatcherConfig, TelemetryConfig
from auth_dispatch.errors import InvalidConfigError


class TestDispatcherConfig:
    """Tests for DispatcherConfig."""

    def test_defaults(self) -> None:
        config = DispatcherConfig()

        assert config.also_intercept_forbidden is False
        assert config.base_url is None
        assert config.base_url_str == ""
        assert config.intercepted_status_codes == frozenset({401})

    def test_intercept_forbidden_widens_statuses(self, forbidden_config: DispatcherConfig) -> None:
        assert forbidden_config.intercepted_status_codes == frozenset({401, 403})

    def test_base_url_trailing_slash_stripped(self, base_config: DispatcherConfig) -> None:
        assert base_config.base_url_str == "https://api.example.com"

    def test_frozen(self, base_config: DispatcherConfig) -> None:
        with pytest.raises(ValidationError):
            base_config.also_intercept_forbidden = True  # type: ignore[misc]

    @pytest.mark.parametrize("timeout", [0, -1, 301])
    def test_invalid_timeout(self, timeout: float) -> None:
        with pytest.raises(ValidationError):
            DispatcherConfig(timeout=timeout)

    def test_with_overrides(self, base_config: DispatcherConfig) -> None:
        updated = base_config.with_overrides(also_intercept_forbidden=True)

        assert updated.also_intercept_forbidden is True
        assert updated.base_url_str == base_config.base_url_str
        assert base_config.also_intercept_forbidden is False

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUTH_DISPATCH_BASE_URL", "https://api.example.com")
        monkeypatch.setenv("AUTH_DISPATCH_ALSO_INTERCEPT_FORBIDDEN", "yes")
        monkeypatch.setenv("AUTH_DISPATCH_TIMEOUT", "5")

        config = DispatcherConfig.from_env()

        assert config.base_url_str == "https://api.example.com"
        assert config.also_intercept_forbidden is True
        assert config.timeout == 5.0

    def test_from_env_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for key in ("BASE_URL", "ALSO_INTERCEPT_FORBIDDEN", "TIMEOUT", "CONNECT_TIMEOUT"):
            monkeypatch.delenv(f"AUTH_DISPATCH_{key}", raising=False)

        config = DispatcherConfig.from_env()

        assert config.base_url is None
        assert config.also_intercept_forbidden is False

    def test_from_env_rejects_bad_boolean(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TEST_ALSO_INTERCEPT_FORBIDDEN", "sometimes")

        with pytest.raises(InvalidConfigError) as exc_info:
            DispatcherConfig.from_env(prefix="TEST_")

        assert exc_info.value.details["field"] == "also_intercept_forbidden"


class TestTelemetryConfig:
    """Tests for TelemetryConfig."""

    def test_log_level_normalized(self) -> None:
        assert TelemetryConfig(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TelemetryConfig(log_level="LOUD")

    def test_fixture(self, telemetry_config: TelemetryConfig) -> None:
        assert telemetry_config.enabled is False
        assert telemetry_config.service_name == "test-dispatch"
