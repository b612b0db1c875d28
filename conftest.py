"""Root conftest for pytest configuration and shared fixtures.

This conftest is loaded before both testpaths (tests/ and telemetry/),
making its fixtures available to centralized tests AND colocated adapter tests.
"""

import logging
import os

import pytest

# Register pytest-asyncio plugin at the root level
pytest_plugins = ("pytest_asyncio",)

# ---------------------------------------------------------------------------
# Environment variables: must be set before any telemetry module import
# Uses setdefault so real env vars (CI) are never overridden.
# ---------------------------------------------------------------------------
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("ANALYTICS_ENABLED", "false")
os.environ.setdefault("TELEMETRY_DEBUG", "false")


# ---------------------------------------------------------------------------
# Shared fake fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_provider():
    """Fake TelemetryProvider that records every call."""
    from telemetry.adapters.analytics.fake import FakeTelemetryProvider

    return FakeTelemetryProvider()


@pytest.fixture
def service():
    """Isolated, unconfigured TelemetryService; its loop is stopped afterwards."""
    from telemetry.core.telemetry_service import TelemetryService

    svc = TelemetryService()
    yield svc
    svc.shutdown(timeout=5)


@pytest.fixture
def configured_service(service, fake_provider):
    """TelemetryService with the fake provider already installed."""
    service.configure_now(fake_provider)
    return service


@pytest.fixture(autouse=True)
def _reset_shared_service():
    """Drop the process-wide service, init guard and log level between tests."""
    yield
    from telemetry.core.factory import reset_initialization
    from telemetry.core.logging import logger
    from telemetry.core.telemetry_service import reset_shared

    reset_shared()
    reset_initialization()
    logger.setLevel(logging.NOTSET)
