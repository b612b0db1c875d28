"""Protocol for analytics providers.

A provider is the adapter between ``TelemetryService`` and one analytics
backend (PostHog today, could be Segment/Amplitude/etc. later) or a test
double. The service only ever talks to this surface.

Every method is a coroutine. Two different operations invoked concurrently
on the same provider have no ordering guarantee; each operation's own side
effect must be applied atomically.
"""

from typing import Protocol, runtime_checkable

from telemetry.core.models import Event, Screen, User


@runtime_checkable
class TelemetryProvider(Protocol):
    """Capability set every analytics backend must satisfy.

    Implementations must not raise for recoverable conditions. Vendor
    failures are logged and swallowed at this boundary.
    """

    async def track(self, event: Event) -> None:
        """Record a custom event."""
        ...

    async def identify(self, user: User) -> None:
        """Associate subsequent activity with a user and set their properties."""
        ...

    async def screen(self, screen: Screen) -> None:
        """Record a screen view."""
        ...

    async def get_feature_flag(self, key: str, default_value: bool) -> bool:
        """Return the flag value, or ``default_value`` when the flag is unknown."""
        ...

    async def get_feature_flag_payload_string(self, key: str) -> str:
        """Return the flag payload as a string.

        Returns ``""`` both when the key is unknown and when its payload is
        not a string.
        """
        ...

    async def reset(self) -> None:
        """Forget the current user session, e.g. on logout."""
        ...

    async def flush(self) -> None:
        """Send any queued events now."""
        ...
