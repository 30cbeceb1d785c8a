"""Unit tests for stormrocks.domain.utils."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from stormrocks.domain.model import Document, attribute
from stormrocks.domain.utils import (
    decode_value,
    encode_value,
    parse_timestamp,
    to_wire_name,
)
from tests.helpers.time_asserts import assert_strict_utc

# pylint: disable=magic-value-comparison


@dataclass(frozen=True, slots=True)
class Phone(Document):
    """Nested document used by the codec tests."""

    value: str = attribute("")
    numeric: str = attribute("")


@pytest.mark.parametrize(
    ("attr", "wire"),
    [
        ("id", "Id"),
        ("default_account_id", "DefaultAccountId"),
        ("last_login_ip", "LastLoginIP"),
        ("md5", "MD5"),
        ("country_iso", "CountryISO"),
        ("create_date", "CreateDate"),
    ],
)
def test_to_wire_name(attr: str, wire: str) -> None:
    """snake_case attributes map to PascalCase keys, with known acronyms."""
    assert to_wire_name(attr) == wire


class TestParseTimestamp:
    """ISO-8601 parsing into tz-aware UTC datetimes."""

    @staticmethod
    @pytest.mark.parametrize(
        "text",
        [
            "2024-03-01T12:30:00Z",
            "2024-03-01T12:30:00+00:00",
            "2024-03-01T12:30:00",
            "2024-03-01T14:30:00+02:00",
        ],
    )
    def test_normalizes_to_utc(text: str) -> None:
        """Zulu, offset and naive forms all land on the same UTC instant."""
        parsed = parse_timestamp(text)
        assert_strict_utc(parsed)
        assert parsed == datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)

    @staticmethod
    def test_nanosecond_fractions_are_truncated() -> None:
        """Fractions longer than microseconds are cut, not rejected."""
        parsed = parse_timestamp("2024-03-01T12:30:00.123456789Z")
        assert parsed is not None
        assert parsed.microsecond == 123456

    @staticmethod
    def test_short_fractions_are_padded() -> None:
        """A single fractional digit means tenths of a second."""
        parsed = parse_timestamp("2024-03-01T12:30:00.5Z")
        assert parsed is not None
        assert parsed.microsecond == 500000

    @staticmethod
    def test_year_one_means_unset() -> None:
        """The zero timestamp used by seed data parses to None."""
        assert parse_timestamp("0001-01-01T00:00:00Z") is None

    @staticmethod
    def test_datetime_input_is_converted() -> None:
        """A datetime with another offset is converted to UTC."""
        value = datetime(2024, 1, 1, 10, tzinfo=timezone(timedelta(hours=-5)))
        parsed = parse_timestamp(value)
        assert_strict_utc(parsed)
        assert parsed.hour == 15

    @staticmethod
    def test_garbage_raises_value_error() -> None:
        """Unparseable text raises ValueError."""
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")


class TestCodec:
    """encode_value / decode_value."""

    @staticmethod
    def test_encode_datetime_and_nested_documents() -> None:
        """Datetimes become ISO strings and documents become mappings."""
        when = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert encode_value(when) == "2024-01-02T03:04:05+00:00"
        assert encode_value([Phone("555", "5")]) == [{"Value": "555", "Numeric": "5"}]
        assert encode_value({"a": 1}) == {"a": 1}

    @staticmethod
    @pytest.mark.parametrize(
        ("hint", "raw", "expected"),
        [
            (int, "7", 7),
            (float, 2, 2.0),
            (bool, True, True),
            (bool, "false", False),
            (bool, " TRUE ", True),
            (str, 5, "5"),
            (int | None, 3, 3),
            (list[int], ["1", 2], [1, 2]),
            (dict[str, Any], {"k": "v"}, {"k": "v"}),
            (Any, {"free": ["form"]}, {"free": ["form"]}),
        ],
    )
    def test_decode_scalars_and_containers(hint, raw, expected) -> None:
        """Values are coerced to the hinted type."""
        assert decode_value(hint, raw) == expected

    @staticmethod
    def test_decode_none_passes_through() -> None:
        """None stays None for every hint."""
        assert decode_value(int, None) is None
        assert decode_value(Phone, None) is None

    @staticmethod
    def test_decode_nested_document_and_datetime() -> None:
        """Document dataclasses and datetimes are rebuilt."""
        assert decode_value(Phone, {"Value": "555", "Extra": 1}) == Phone("555", "")
        decoded = decode_value(datetime | None, "2024-01-01T00:00:00Z")
        assert decoded == datetime(2024, 1, 1, tzinfo=timezone.utc)

    @staticmethod
    @pytest.mark.parametrize(
        ("hint", "raw"),
        [
            (bool, 1),
            (bool, "no"),
            (Phone, "555"),
            (list[int], "1,2"),
            (dict[str, Any], ["k"]),
            (datetime, 1700000000),
        ],
    )
    def test_decode_rejects_wrong_shapes(hint, raw) -> None:
        """A value of the wrong JSON shape raises ValueError."""
        with pytest.raises(ValueError):
            decode_value(hint, raw)
