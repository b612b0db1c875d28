"""Process-wide telemetry entry point.

``TelemetryService`` forwards analytics calls to whichever
``TelemetryProvider`` is currently configured. Each operation comes in two
forms:

- fire-and-forget (``track``, ``identify``, ``screen``, ``reset``, ``flush``,
  ``configure``): returns immediately, the provider call runs later on the
  service's background loop and its outcome is never reported back.
- waitable (``track_async``, ``get_feature_flag``, ``flush_async``, ...):
  coroutines that resolve once the provider call has finished.

Fire-and-forget calls read the provider slot at the moment they are issued.
Swapping providers does not flush or reset the old one, and calls already in
flight against it still complete there.

Usage:
    from telemetry import TelemetryService, Event

    service = TelemetryService.shared()
    await service.configure_async(PostHogProvider(api_key="phc_..."))
    service.track("button_tapped", {"screen": "home"})
    enabled = await service.get_feature_flag("new_ui")
"""

import logging
import threading
from typing import Any, Mapping, Optional, Type, TypeVar, Union

from pydantic import ValidationError

from telemetry.core.models import Event, Screen, User
from telemetry.core.protocols.provider import TelemetryProvider
from telemetry.core.runner import BackgroundRunner

logger = logging.getLogger(__name__)

PropertiesArg = Optional[Mapping[str, Any]]

Record = TypeVar("Record", Event, User, Screen)


def _build(model: Type[Record], **fields: Any) -> Optional[Record]:
    """Build a record, logging and returning None when the input cannot be used."""
    try:
        return model(**fields)
    except ValidationError as e:
        logger.error("Dropping telemetry %s with invalid input: %s", model.__name__.lower(), e)
        return None


class TelemetryService:
    """Route analytics calls to the configured provider.

    Safe to use from any number of threads and event loops at once. The
    provider slot is the only shared mutable state and is guarded by a lock.

    Args:
        provider: Optional provider to install immediately.
        debug: Log a warning when a waitable call finds no provider.
        runner: Background loop to dispatch on; one is created if omitted.
    """

    def __init__(
        self,
        provider: Optional[TelemetryProvider] = None,
        *,
        debug: bool = False,
        runner: Optional[BackgroundRunner] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._provider: Optional[TelemetryProvider] = provider
        self._debug = debug
        self._runner = runner or BackgroundRunner()

    # ------------------------------------------------------------------
    # Shared instance
    # ------------------------------------------------------------------

    @classmethod
    def shared(cls) -> "TelemetryService":
        """Return the lazily-built process-wide instance."""
        global _shared_service

        if _shared_service is None:
            with _shared_lock:
                if _shared_service is None:
                    _shared_service = cls()
        return _shared_service

    @classmethod
    def default(cls) -> "TelemetryService":
        """Alias for ``shared()``."""
        return cls.shared()

    # ------------------------------------------------------------------
    # Provider slot
    # ------------------------------------------------------------------

    @property
    def provider(self) -> Optional[TelemetryProvider]:
        """The provider calls are currently routed to, if any."""
        with self._lock:
            return self._provider

    @property
    def debug(self) -> bool:
        """Whether unconfigured waitable calls log a warning."""
        return self._debug

    @debug.setter
    def debug(self, value: bool) -> None:
        self._debug = value

    @property
    def is_configured(self) -> bool:
        """Whether a provider has been installed."""
        return self.provider is not None

    def _set_provider(self, provider: TelemetryProvider) -> None:
        with self._lock:
            previous = self._provider
            self._provider = provider
        if previous is not None and previous is not provider:
            logger.debug(
                "Replaced telemetry provider %s with %s",
                type(previous).__name__,
                type(provider).__name__,
            )

    async def _commit_provider(self, provider: TelemetryProvider) -> None:
        self._set_provider(provider)

    def configure(self, provider: TelemetryProvider) -> None:
        """Install ``provider`` without waiting for the swap to land.

        Calls issued right after this may still see the previous slot.
        Use ``configure_async`` when that matters.
        """
        self._runner.submit(self._commit_provider(provider))

    async def configure_async(self, provider: TelemetryProvider) -> None:
        """Install ``provider``; every call issued after this returns uses it."""
        self._set_provider(provider)

    def configure_now(self, provider: TelemetryProvider) -> None:
        """Blocking counterpart of ``configure_async`` for synchronous startup code."""
        self._set_provider(provider)

    def _warn_unconfigured(self, operation: str) -> None:
        if self._debug:
            logger.warning(
                "Telemetry provider not configured; dropping %s. Call configure() first.",
                operation,
            )

    def _dispatch(self, operation: str, *args: Any) -> None:
        provider = self.provider
        # None stands for a record that could not be built
        if provider is None or None in args:
            return
        self._runner.submit(getattr(provider, operation)(*args))

    async def _await(self, operation: str, *args: Any) -> None:
        provider = self.provider
        if provider is None:
            self._warn_unconfigured(operation)
            return
        if None in args:
            return
        await self._runner.run(getattr(provider, operation)(*args))

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    @staticmethod
    def _as_event(event: Union[Event, str], properties: PropertiesArg) -> Optional[Event]:
        if isinstance(event, Event):
            return event
        return _build(Event, name=event, properties=properties or {})

    def track(self, event: Union[Event, str], properties: PropertiesArg = None) -> None:
        """Track an event (fire-and-forget).

        Args:
            event: An ``Event`` or an event name such as ``"button_tapped"``.
            properties: Event properties; ignored when ``event`` is an ``Event``.
        """
        self._dispatch("track", self._as_event(event, properties))

    async def track_async(self, event: Union[Event, str], properties: PropertiesArg = None) -> None:
        """Track an event and wait until the provider has recorded it."""
        await self._await("track", self._as_event(event, properties))

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @staticmethod
    def _as_user(user: Union[User, str], properties: PropertiesArg) -> Optional[User]:
        if isinstance(user, User):
            return user
        return _build(User, user_id=user, properties=properties or {})

    def identify(self, user: Union[User, str], properties: PropertiesArg = None) -> None:
        """Identify a user (fire-and-forget).

        Args:
            user: A ``User`` or a user id.
            properties: User properties such as email or plan.
        """
        self._dispatch("identify", self._as_user(user, properties))

    async def identify_async(self, user: Union[User, str], properties: PropertiesArg = None) -> None:
        """Identify a user and wait for the provider."""
        await self._await("identify", self._as_user(user, properties))

    # ------------------------------------------------------------------
    # Screens
    # ------------------------------------------------------------------

    @staticmethod
    def _as_screen(screen: Union[Screen, str], properties: PropertiesArg) -> Optional[Screen]:
        if isinstance(screen, Screen):
            return screen
        return _build(Screen, name=screen, properties=properties or {})

    def screen(self, screen: Union[Screen, str], properties: PropertiesArg = None) -> None:
        """Track a screen view (fire-and-forget)."""
        self._dispatch("screen", self._as_screen(screen, properties))

    async def screen_async(
        self, screen: Union[Screen, str], properties: PropertiesArg = None
    ) -> None:
        """Track a screen view and wait for the provider."""
        await self._await("screen", self._as_screen(screen, properties))

    # ------------------------------------------------------------------
    # Feature flags
    # ------------------------------------------------------------------

    async def get_feature_flag(self, key: str, default_value: bool = False) -> bool:
        """Return a feature flag, or ``default_value`` when unknown or unconfigured.

        Flag values are not cached; callers on a hot path should cache them.
        """
        provider = self.provider
        if provider is None:
            self._warn_unconfigured("get_feature_flag")
            return default_value
        return await self._runner.run(provider.get_feature_flag(key, default_value))

    async def get_feature_flag_payload_string(self, key: str) -> str:
        """Return a flag payload as a string, ``""`` when absent or unconfigured."""
        provider = self.provider
        if provider is None:
            self._warn_unconfigured("get_feature_flag_payload_string")
            return ""
        return await self._runner.run(provider.get_feature_flag_payload_string(key))

    # ------------------------------------------------------------------
    # Session management
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Reset the current user session, e.g. on logout (fire-and-forget)."""
        self._dispatch("reset")

    async def reset_async(self) -> None:
        """Reset the current user session and wait for the provider."""
        await self._await("reset")

    def flush(self) -> None:
        """Ask the provider to send queued events (fire-and-forget)."""
        self._dispatch("flush")

    async def flush_async(self) -> None:
        """Flush queued events and wait; call before process exit."""
        await self._await("flush")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def drain(self) -> None:
        """Wait until every fire-and-forget call issued so far has settled."""
        await self._runner.drain()

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Blocking ``drain`` for synchronous code. False if ``timeout`` expired."""
        return self._runner.wait_idle(timeout)

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Settle pending calls and stop the background loop.

        The provider stays installed; a later call starts a new loop.
        """
        self._runner.shutdown(timeout)


_shared_service: Optional[TelemetryService] = None
_shared_lock = threading.Lock()


def get_telemetry() -> TelemetryService:
    """Return the process-wide ``TelemetryService``."""
    return TelemetryService.shared()


def reset_shared() -> None:
    """Drop the shared instance. For testing only."""
    global _shared_service

    with _shared_lock:
        if _shared_service is not None:
            _shared_service.shutdown()
            _shared_service = None
