"""Unit tests for property normalization."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from uuid import UUID

import pytest

from telemetry.core.properties import (
    ISO_FORMATTER,
    IsoTimestampFormatter,
    normalize_properties,
    normalize_value,
)


class Plan(str, Enum):
    PRO = "pro"


@dataclass
class NormalizeCase:
    id: str
    value: object
    expected: object


PASS_THROUGH_CASES = [
    NormalizeCase(id="str", value="John Doe", expected="John Doe"),
    NormalizeCase(id="empty-str", value="", expected=""),
    NormalizeCase(id="int", value=42, expected=42),
    NormalizeCase(id="negative-int", value=-7, expected=-7),
    NormalizeCase(id="float", value=9.99, expected=9.99),
    NormalizeCase(id="list", value=[1, 2, 3], expected=[1, 2, 3]),
    NormalizeCase(id="tuple", value=("a", "b"), expected=("a", "b")),
    NormalizeCase(id="dict", value={"nested": "value"}, expected={"nested": "value"}),
    NormalizeCase(id="str-enum", value=Plan.PRO, expected="pro"),
]

FALLBACK_CASES = [
    NormalizeCase(id="none", value=None, expected="None"),
    NormalizeCase(id="decimal", value=Decimal("1.50"), expected="1.50"),
    NormalizeCase(
        id="uuid",
        value=UUID("aaaaaaaa-0000-0000-0000-000000000001"),
        expected="aaaaaaaa-0000-0000-0000-000000000001",
    ),
    NormalizeCase(id="set", value={1}, expected="{1}"),
    NormalizeCase(id="bytes", value=b"x", expected="b'x'"),
    NormalizeCase(id="int-keyed-dict", value={1: "a"}, expected="{1: 'a'}"),
    NormalizeCase(id="date", value=date(2021, 1, 1), expected="2021-01-01"),
]


@pytest.mark.parametrize("case", PASS_THROUGH_CASES, ids=[c.id for c in PASS_THROUGH_CASES])
def test_pass_through(case: NormalizeCase):
    assert normalize_value(case.value) == case.expected


@pytest.mark.parametrize("case", FALLBACK_CASES, ids=[c.id for c in FALLBACK_CASES])
def test_string_fallback(case: NormalizeCase):
    result = normalize_value(case.value)
    assert isinstance(result, str)
    assert result == case.expected


def test_bools_stay_bools():
    result = normalize_properties({"on": True, "off": False})
    assert result["on"] is True
    assert result["off"] is False


def test_sequences_and_maps_are_not_recursed():
    ts = datetime(2021, 1, 1, tzinfo=timezone.utc)
    result = normalize_properties({"list": [ts], "map": {"at": ts}})
    assert result["list"][0] is ts
    assert result["map"]["at"] is ts


# ---------------------------------------------------------------------------
# Datetimes
# ---------------------------------------------------------------------------


def test_datetime_renders_iso_utc():
    ts = datetime(2021, 1, 1, tzinfo=timezone.utc)
    assert normalize_properties({"signup": ts})["signup"] == "2021-01-01T00:00:00Z"


@pytest.mark.parametrize(
    "value",
    [
        datetime(1999, 12, 31, 23, 59, 59, tzinfo=timezone.utc),
        datetime(2021, 1, 1, 5, 30, tzinfo=timezone(timedelta(hours=5, minutes=30))),
        datetime(2030, 7, 4, 8, 15),
    ],
    ids=["utc", "offset", "naive"],
)
def test_datetime_contains_year_and_parses_back(value: datetime):
    rendered = normalize_properties({"k": value})["k"]
    assert isinstance(rendered, str)
    parsed = datetime.fromisoformat(rendered.replace("Z", "+00:00"))
    expected = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    assert parsed == expected
    assert str(parsed.year) in rendered


def test_offset_converted_to_utc():
    ts = datetime(2021, 1, 1, 5, 30, tzinfo=timezone(timedelta(hours=5, minutes=30)))
    assert ISO_FORMATTER.format(ts) == "2021-01-01T00:00:00Z"


def test_shared_formatter_instance():
    assert isinstance(ISO_FORMATTER, IsoTimestampFormatter)


# ---------------------------------------------------------------------------
# Mapping-level behaviour
# ---------------------------------------------------------------------------


def test_empty_returns_new_empty_dict():
    source: dict = {}
    result = normalize_properties(source)
    assert result == {}
    assert result is not source


def test_input_not_modified():
    ts = datetime(2021, 1, 1, tzinfo=timezone.utc)
    source = {"at": ts, "n": 1}
    normalize_properties(source)
    assert source == {"at": ts, "n": 1}


def test_idempotent_for_primitives():
    props = {"s": "x", "i": 1, "f": 1.5, "b": True}
    once = normalize_properties(props)
    assert normalize_properties(once) == once == props


def test_idempotent_after_datetime_rendering():
    props = {"at": datetime(2021, 1, 1, tzinfo=timezone.utc), "obj": object()}
    once = normalize_properties(props)
    assert normalize_properties(once) == once


def test_long_keys_and_values_preserved():
    key = "a" * 10_000
    value = "x" * 100_000
    assert normalize_properties({key: value}) == {key: value}


def test_mixed_purchase_properties():
    result = normalize_properties({"price": 9.99, "currency": "USD", "qty": 2})
    assert result == {"price": 9.99, "currency": "USD", "qty": 2}
    assert isinstance(result["price"], float)
