"""Vendor-agnostic telemetry facade.

Application code talks to ``TelemetryService``; a ``TelemetryProvider``
(PostHog, or a fake in tests) does the actual sending.

Usage:
    from telemetry import PostHogProvider, get_telemetry

    telemetry = get_telemetry()
    telemetry.configure_now(PostHogProvider(api_key="phc_..."))
    telemetry.track("button_tapped", {"screen": "home"})
"""

from telemetry.adapters.analytics.fake import FakeTelemetryProvider
from telemetry.adapters.analytics.posthog import PostHogProvider
from telemetry.core.models import Event, Screen, User
from telemetry.core.properties import normalize_properties
from telemetry.core.protocols.provider import TelemetryProvider
from telemetry.core.telemetry_service import TelemetryService, get_telemetry, reset_shared

__all__ = [
    "Event",
    "FakeTelemetryProvider",
    "PostHogProvider",
    "Screen",
    "TelemetryProvider",
    "TelemetryService",
    "User",
    "get_telemetry",
    "normalize_properties",
    "reset_shared",
]
