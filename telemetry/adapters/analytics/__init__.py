"""Telemetry provider adapters."""

from telemetry.adapters.analytics.fake import FakeTelemetryProvider
from telemetry.adapters.analytics.posthog import PostHogProvider

__all__ = ["FakeTelemetryProvider", "PostHogProvider"]
