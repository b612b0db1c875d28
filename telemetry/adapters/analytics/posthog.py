"""PostHog telemetry provider adapter."""

import asyncio
import logging
import threading
import uuid
from typing import Any, Dict, Optional

from posthog import Posthog

from telemetry.core.models import Event, Screen, User
from telemetry.core.properties import normalize_properties

logger = logging.getLogger(__name__)

DEFAULT_HOST = "https://us.i.posthog.com"
SCREEN_EVENT = "$screen"
IDENTIFY_EVENT = "$identify"


class PostHogProvider:
    """Wraps the PostHog SDK behind TelemetryProvider.

    The SDK client is built lazily on first use (or by an explicit
    ``configure()``), exactly once per provider. Batching, retries and
    delivery are left to the SDK's own consumer thread.

    PostHog's server SDK needs a distinct id on every call. The provider
    keeps the current one: ``identify`` adopts the user's id and links the
    anonymous id it replaces, ``reset`` switches to a fresh anonymous id.

    Errors from the SDK are logged, never raised.
    """

    def __init__(
        self,
        api_key: str,
        host: str = DEFAULT_HOST,
        *,
        distinct_id: Optional[str] = None,
    ) -> None:
        """Store credentials; no network or SDK setup happens here."""
        self._api_key = api_key
        self._host = host
        self._lock = threading.Lock()
        self._client: Optional[Posthog] = None
        self._distinct_id = distinct_id or self._anonymous_id()
        self._anonymous = True

    @staticmethod
    def _anonymous_id() -> str:
        return uuid.uuid4().hex

    @property
    def host(self) -> str:
        return self._host

    @property
    def is_configured(self) -> bool:
        with self._lock:
            return self._client is not None

    @property
    def distinct_id(self) -> str:
        with self._lock:
            return self._distinct_id

    async def configure(self) -> None:
        """Build the SDK client. Idempotent and safe to call from any thread."""
        self._ensure_client()

    def _ensure_client(self) -> Optional[Posthog]:
        with self._lock:
            if self._client is None:
                try:
                    self._client = Posthog(self._api_key, host=self._host)
                    logger.info("PostHog telemetry provider initialized (host=%s)", self._host)
                except Exception:
                    logger.exception("Failed to initialize PostHog client")
            return self._client

    # TelemetryProvider

    async def track(self, event: Event) -> None:
        """Capture the event under the current distinct id."""
        client = self._ensure_client()
        if client is None:
            return
        try:
            client.capture(
                event=event.name,
                distinct_id=self.distinct_id,
                properties=normalize_properties(event.properties),
                timestamp=event.timestamp,
            )
        except Exception as e:
            logger.error("Failed to track telemetry event '%s': %s", event.name, e)

    async def identify(self, user: User) -> None:
        """Adopt ``user.user_id`` as the distinct id and set person properties.

        Sends ``$identify`` with ``$set``. When the provider was anonymous,
        ``$anon_distinct_id`` is attached so earlier events merge into the user.
        """
        client = self._ensure_client()
        if client is None:
            return
        with self._lock:
            previous, was_anonymous = self._distinct_id, self._anonymous
            self._distinct_id = user.user_id
            self._anonymous = False
        properties: Dict[str, Any] = {"$set": normalize_properties(user.properties)}
        if was_anonymous and previous != user.user_id:
            properties["$anon_distinct_id"] = previous
        try:
            client.capture(
                event=IDENTIFY_EVENT,
                distinct_id=user.user_id,
                properties=properties,
            )
        except Exception as e:
            logger.error("Failed to identify telemetry user: %s", e)

    async def screen(self, screen: Screen) -> None:
        """Capture a ``$screen`` event carrying ``$screen_name``."""
        client = self._ensure_client()
        if client is None:
            return
        properties: Dict[str, Any] = normalize_properties(screen.properties)
        properties["$screen_name"] = screen.name
        try:
            client.capture(
                event=SCREEN_EVENT,
                distinct_id=self.distinct_id,
                properties=properties,
            )
        except Exception as e:
            logger.error("Failed to track telemetry screen '%s': %s", screen.name, e)

    async def get_feature_flag(self, key: str, default_value: bool) -> bool:
        """Evaluate the flag for the current distinct id."""
        client = self._ensure_client()
        if client is None:
            return default_value
        try:
            enabled = await asyncio.to_thread(client.feature_enabled, key, self.distinct_id)
        except Exception as e:
            logger.error("Failed to evaluate feature flag '%s': %s", key, e)
            return default_value
        return default_value if enabled is None else bool(enabled)

    async def get_feature_flag_payload(self, key: str) -> Optional[Any]:
        """Return the raw flag payload, or None."""
        client = self._ensure_client()
        if client is None:
            return None
        try:
            return await asyncio.to_thread(client.get_feature_flag_payload, key, self.distinct_id)
        except Exception as e:
            logger.error("Failed to fetch feature flag payload '%s': %s", key, e)
            return None

    async def get_feature_flag_payload_string(self, key: str) -> str:
        """Return the payload if it is a string; ``""`` otherwise."""
        payload = await self.get_feature_flag_payload(key)
        return payload if isinstance(payload, str) else ""

    async def reset(self) -> None:
        """Drop the identified user and continue under a new anonymous id."""
        self._ensure_client()
        with self._lock:
            self._distinct_id = self._anonymous_id()
            self._anonymous = True

    async def flush(self) -> None:
        """Ask the SDK to send its queue now."""
        client = self._ensure_client()
        if client is None:
            return
        try:
            await asyncio.to_thread(client.flush)
        except Exception as e:
            logger.error("Failed to flush telemetry events: %s", e)

    def shutdown(self) -> None:
        """Flush and stop the SDK consumer thread."""
        with self._lock:
            client, self._client = self._client, None
        if client is None:
            return
        try:
            client.shutdown()
        except Exception as e:
            logger.error("Failed to shut down PostHog client: %s", e)
