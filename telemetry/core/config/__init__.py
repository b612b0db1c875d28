"""Configuration module for the telemetry package.

Usage:
    from telemetry.core.config import settings, Environment

    if settings.ENVIRONMENT == Environment.PRD:
        ...
"""

from telemetry.core.config.enums import Environment
from telemetry.core.config.settings import Settings

__all__ = [
    "Settings",
    "Environment",
    "settings",
]

# Singleton settings instance
settings = Settings()
