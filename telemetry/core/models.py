"""Value types for the three analytics facts.

Each is a frozen Pydantic model: fields cannot be reassigned after
construction and equality is structural. The properties mapping is copied
during validation and stored read-only, so neither the caller's dict nor a
consumer holding the record can change it afterwards. Freezing is shallow:
nested lists and dicts keep whatever mutability the caller gave them.

Property values are typed ``Any`` on purpose. Anything outside the
transportable set is rendered to a string later by
``telemetry.core.properties.normalize_properties`` rather than rejected here.
Keys that are not strings are converted with ``str()``.
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer


def _stringify_keys(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(key): item for key, item in value.items()}
    return value


Properties = Annotated[
    Mapping[str, Any],
    BeforeValidator(_stringify_keys),
    AfterValidator(lambda value: MappingProxyType(dict(value))),
    PlainSerializer(lambda value: dict(value), return_type=dict),
]


def _no_properties() -> Mapping[str, Any]:
    return MappingProxyType({})


class Event(BaseModel):
    """A named analytics event, e.g. ``button_tapped``."""

    model_config = ConfigDict(frozen=True)

    name: str
    properties: Properties = Field(default_factory=_no_properties)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class User(BaseModel):
    """Payload of an identify call."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    properties: Properties = Field(default_factory=_no_properties)


class Screen(BaseModel):
    """A screen view, e.g. ``SettingsView``."""

    model_config = ConfigDict(frozen=True)

    name: str
    properties: Properties = Field(default_factory=_no_properties)
