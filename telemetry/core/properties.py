"""Property normalization for vendor transport.

Provider implementations call ``normalize_properties`` before handing a
properties mapping to a vendor SDK. Every value comes out as one of
str, int, float, bool, list/tuple, or a str-keyed mapping; anything else is
rendered with ``str()`` so a tracking call never fails over property shape.

Sequences and mappings pass through as-is. Their elements are not
normalized.
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Dict


class IsoTimestampFormatter:
    """Render datetimes as ISO-8601 UTC strings (``2021-01-01T00:00:00Z``).

    Holds no mutable state, so one instance is shared by every caller and
    thread.
    """

    pattern = "%Y-%m-%dT%H:%M:%SZ"

    def format(self, value: datetime) -> str:
        """Format ``value``; naive datetimes are taken to be UTC."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).strftime(self.pattern)


ISO_FORMATTER = IsoTimestampFormatter()


def _is_string_keyed(value: Mapping) -> bool:
    return all(isinstance(key, str) for key in value)


def normalize_value(value: Any) -> Any:
    """Convert a single property value to its transport shape."""
    # bool is a subclass of int and must be matched first
    if isinstance(value, bool):
        return value
    if isinstance(value, (str, int, float)):
        return value
    if isinstance(value, datetime):
        return ISO_FORMATTER.format(value)
    if isinstance(value, (list, tuple)):
        return value
    if isinstance(value, Mapping) and _is_string_keyed(value):
        return value
    return str(value)


def normalize_properties(properties: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a new mapping with every value in transport shape.

    Args:
        properties: Event, user, or screen properties.

    Returns:
        A new dict with the same keys. The input is never modified.
    """
    if not properties:
        return {}
    return {key: normalize_value(value) for key, value in properties.items()}
