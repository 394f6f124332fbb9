"""
Shared test fixtures for the dispatcher tests.

Provides configuration fixtures and a mock protected endpoint.
"""

import pytest

from auth_dispatch.config import DispatcherConfig, TelemetryConfig

from .helpers import RecordingEndpoint


@pytest.fixture
def base_config() -> DispatcherConfig:
    """Provide a basic dispatcher configuration for testing."""
    return DispatcherConfig(base_url="https://api.example.com")


@pytest.fixture
def forbidden_config() -> DispatcherConfig:
    """Provide configuration that also intercepts 403 responses."""
    return DispatcherConfig(
        base_url="https://api.example.com",
        also_intercept_forbidden=True,
    )


@pytest.fixture
def telemetry_config() -> TelemetryConfig:
    """Provide telemetry configuration for testing."""
    return TelemetryConfig(
        enabled=False,
        service_name="test-dispatch",
        trace_requests=False,
    )


@pytest.fixture
def endpoint() -> RecordingEndpoint:
    """Provide a protected endpoint that only accepts the fresh token."""
    return RecordingEndpoint()
