"""Application settings loaded from environment variables."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from telemetry.core.config.enums import Environment


class Settings(BaseSettings):
    """Telemetry settings.

    Read from the process environment and an optional ``.env`` file.
    Unknown keys are ignored so the host application can share its env.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    ENVIRONMENT: Environment = Environment.LOCAL

    # PostHog
    ANALYTICS_ENABLED: bool = True
    POSTHOG_API_KEY: Optional[str] = None
    POSTHOG_HOST: str = "https://us.i.posthog.com"

    # Diagnostics
    TELEMETRY_DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    @property
    def analytics_active(self) -> bool:
        """Whether a vendor provider should be built for this deployment."""
        return (
            self.ANALYTICS_ENABLED
            and self.ENVIRONMENT != Environment.LOCAL
            and bool(self.POSTHOG_API_KEY)
        )
