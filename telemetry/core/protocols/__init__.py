"""Core protocols implemented by adapters."""

from telemetry.core.protocols.provider import TelemetryProvider

__all__ = [
    "TelemetryProvider",
]
