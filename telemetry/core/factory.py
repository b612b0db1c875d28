"""Telemetry wiring.

All construction decisions live here: which provider a deployment gets and
how the shared service is initialized from settings.

Usage:
    # At application startup
    from telemetry.core.config import settings
    from telemetry.core.factory import initialize_telemetry

    initialize_telemetry(settings)

    # In tests, build isolated services directly with fakes
    service = TelemetryService(FakeTelemetryProvider())
"""

import logging
from typing import Optional

from telemetry.adapters.analytics.posthog import PostHogProvider
from telemetry.core.config import Settings
from telemetry.core.logging import configure_logging
from telemetry.core.protocols.provider import TelemetryProvider
from telemetry.core.telemetry_service import TelemetryService

logger = logging.getLogger(__name__)

_initialized = False


def create_provider(settings: Settings) -> Optional[TelemetryProvider]:
    """Build the vendor provider for this deployment.

    Returns ``None`` when analytics is disabled, the environment is local, or
    no API key is set. The service then stays unconfigured and every call is
    a no-op.
    """
    if not settings.analytics_active:
        logger.info(
            "PostHog telemetry provider disabled (env=%s)", settings.ENVIRONMENT.value
        )
        return None

    logger.info("PostHog telemetry provider enabled (env=%s)", settings.ENVIRONMENT.value)
    return PostHogProvider(api_key=settings.POSTHOG_API_KEY, host=settings.POSTHOG_HOST)


def create_telemetry_service(settings: Settings) -> TelemetryService:
    """Build an independent service wired from ``settings``."""
    return TelemetryService(create_provider(settings), debug=settings.TELEMETRY_DEBUG)


def initialize_telemetry(settings: Settings) -> TelemetryService:
    """Configure the shared service from settings. Call once at startup.

    Raises:
        RuntimeError: If called more than once.
    """
    global _initialized

    if _initialized:
        raise RuntimeError(
            "Telemetry already initialized. "
            "initialize_telemetry() should only be called once at startup."
        )

    configure_logging(settings.LOG_LEVEL)
    service = TelemetryService.shared()
    service.debug = settings.TELEMETRY_DEBUG
    provider = create_provider(settings)
    if provider is not None:
        service.configure_now(provider)
    _initialized = True
    return service


def reset_initialization() -> None:
    """Allow ``initialize_telemetry`` to run again. For testing only."""
    global _initialized
    _initialized = False
