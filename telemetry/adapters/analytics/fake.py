"""Fake telemetry provider for testing."""

import threading
from typing import Any, Dict, List, Optional

from telemetry.core.models import Event, Screen, User


class FakeTelemetryProvider:
    """In-memory test double for TelemetryProvider.

    Records every event, user and screen in call order, counts ``reset`` and
    ``flush`` calls, and answers flag queries from values set with
    ``set_feature_flag`` / ``set_feature_flag_payload``. One lock guards all
    state, so concurrent calls from any thread or loop are applied one at a
    time.

    Usage:
        provider = FakeTelemetryProvider()
        service = TelemetryService(provider)
        service.track("purchase", {"price": 9.99})
        await service.drain()
        assert provider.has("purchase")
    """

    def __init__(self) -> None:
        """Initialize with empty logs and no flags."""
        self._lock = threading.Lock()
        self._events: List[Event] = []
        self._users: List[User] = []
        self._screens: List[Screen] = []
        self._feature_flags: Dict[str, bool] = {}
        self._feature_flag_payloads: Dict[str, Any] = {}
        self._reset_call_count = 0
        self._flush_call_count = 0

    # TelemetryProvider

    async def track(self, event: Event) -> None:
        """Record the event."""
        with self._lock:
            self._events.append(event)

    async def identify(self, user: User) -> None:
        """Record the user."""
        with self._lock:
            self._users.append(user)

    async def screen(self, screen: Screen) -> None:
        """Record the screen."""
        with self._lock:
            self._screens.append(screen)

    async def get_feature_flag(self, key: str, default_value: bool) -> bool:
        """Return the flag set for ``key``, else ``default_value``."""
        with self._lock:
            return self._feature_flags.get(key, default_value)

    async def get_feature_flag_payload(self, key: str) -> Optional[Any]:
        """Return the raw payload set for ``key``, if any."""
        with self._lock:
            return self._feature_flag_payloads.get(key)

    async def get_feature_flag_payload_string(self, key: str) -> str:
        """Return the payload for ``key`` if it is a string, else ``""``."""
        with self._lock:
            payload = self._feature_flag_payloads.get(key)
        return payload if isinstance(payload, str) else ""

    async def reset(self) -> None:
        """Clear recorded events, users and screens; flags and flush count survive."""
        with self._lock:
            self._events.clear()
            self._users.clear()
            self._screens.clear()
            self._reset_call_count += 1

    async def flush(self) -> None:
        """Count the flush."""
        with self._lock:
            self._flush_call_count += 1

    # Test setters

    def set_feature_flag(self, key: str, value: bool) -> None:
        """Make ``get_feature_flag(key, ...)`` return ``value``."""
        with self._lock:
            self._feature_flags[key] = value

    def set_feature_flag_payload(self, key: str, value: Any) -> None:
        """Store a payload for ``key``."""
        with self._lock:
            self._feature_flag_payloads[key] = value

    def clear_all(self) -> None:
        """Clear every log and flag and zero both counters."""
        with self._lock:
            self._events.clear()
            self._users.clear()
            self._screens.clear()
            self._feature_flags.clear()
            self._feature_flag_payloads.clear()
            self._reset_call_count = 0
            self._flush_call_count = 0

    # Snapshots (copies, safe to iterate while calls continue)

    @property
    def tracked_events(self) -> List[Event]:
        with self._lock:
            return list(self._events)

    @property
    def identified_users(self) -> List[User]:
        with self._lock:
            return list(self._users)

    @property
    def tracked_screens(self) -> List[Screen]:
        with self._lock:
            return list(self._screens)

    @property
    def feature_flags(self) -> Dict[str, bool]:
        with self._lock:
            return dict(self._feature_flags)

    @property
    def feature_flag_payloads(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._feature_flag_payloads)

    @property
    def reset_call_count(self) -> int:
        with self._lock:
            return self._reset_call_count

    @property
    def flush_call_count(self) -> int:
        with self._lock:
            return self._flush_call_count

    @property
    def last_event(self) -> Optional[Event]:
        with self._lock:
            return self._events[-1] if self._events else None

    @property
    def last_user(self) -> Optional[User]:
        with self._lock:
            return self._users[-1] if self._users else None

    @property
    def last_screen(self) -> Optional[Screen]:
        with self._lock:
            return self._screens[-1] if self._screens else None

    # Assertion helpers

    def did_track(self, event_name: str) -> bool:
        """Return True if an event with the given name was tracked."""
        return any(e.name == event_name for e in self.tracked_events)

    def has(self, event_name: str) -> bool:
        """Alias of ``did_track``."""
        return self.did_track(event_name)

    def get(self, event_name: str) -> Event:
        """Return the first tracked event matching name, or raise AssertionError."""
        events = self.tracked_events
        for e in events:
            if e.name == event_name:
                return e
        raise AssertionError(
            f"No telemetry event '{event_name}' tracked. Tracked: {[e.name for e in events]}"
        )

    def get_all(self, event_name: str) -> List[Event]:
        """Return all tracked events matching name."""
        return [e for e in self.tracked_events if e.name == event_name]
