"""Domain layer utilities.

Helpers for moving values between Python dataclasses and the PascalCase JSON
documents StormRocks persists and seeds from.
"""

import re
from collections.abc import Mapping
from dataclasses import is_dataclass
from datetime import datetime, timezone
from types import NoneType, UnionType
from typing import Any, Union, get_args, get_origin

_FRACTION = re.compile(r"\.(\d+)")
_SPECIAL_WIRE_PARTS = {"ip": "IP", "iso": "ISO", "md5": "MD5"}
_BOOL_STRINGS = {"true": True, "false": False}


def utcnow() -> datetime:
    """Return the current time as a tz-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_wire_name(attr: str) -> str:
    """Convert a snake_case attribute name into its PascalCase document key.

    Examples:
        >>> to_wire_name("default_account_id")
        'DefaultAccountId'
        >>> to_wire_name("last_login_ip")
        'LastLoginIP'
    """
    return "".join(
        _SPECIAL_WIRE_PARTS.get(part, part[:1].upper() + part[1:])
        for part in attr.split("_")
    )


def parse_timestamp(value: str | datetime) -> datetime | None:
    """Parse an ISO-8601 timestamp into a tz-aware UTC datetime.

    Fractional seconds of any precision are accepted (nanosecond values are
    truncated to microseconds). Naive values are treated as UTC. The year-one
    timestamp marks an unset value and parses to ``None``.

    Raises:
        ValueError: If ``value`` is not a parseable timestamp.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, 1)
        parsed = datetime.fromisoformat(text)
    if parsed.year == 1:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def encode_value(value: Any) -> Any:
    """Render a field value as a JSON-compatible document value."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    if is_dataclass(value) and hasattr(value, "to_document"):
        return value.to_document()
    return value


def decode_value(hint: Any, value: Any) -> Any:
    """Decode a document value according to a resolved type hint.

    Handles ``X | None`` unions, ``list[X]``, datetimes, nested document
    dataclasses (anything with a ``from_document`` classmethod) and the
    scalar types. Unrecognized hints return the value unchanged.

    Raises:
        ValueError: If ``value`` does not have the shape ``hint`` asks for.
    """
    if value is None:
        return None
    origin = get_origin(hint)
    if origin in (Union, UnionType):
        args = [arg for arg in get_args(hint) if arg is not NoneType]
        return decode_value(args[0], value) if len(args) == 1 else value
    if origin is list:
        _expect(value, list, hint)
        (item_hint,) = get_args(hint) or (Any,)
        return [decode_value(item_hint, v) for v in value]
    if origin is dict:
        _expect(value, Mapping, hint)
        return dict(value)
    if hint is datetime:
        _expect(value, (str, datetime), hint)
        return parse_timestamp(value)
    if is_dataclass(hint) and hasattr(hint, "from_document"):
        _expect(value, Mapping, hint)
        return hint.from_document(value)
    if hint is bool:
        return parse_bool(value)
    if hint is int:
        return int(value)
    if hint is float:
        return float(value)
    if hint is str:
        return value if isinstance(value, str) else str(value)
    return value


def parse_bool(value: Any) -> bool:
    """Accept JSON booleans and the strings ``"true"``/``"false"``.

    Examples:
        >>> parse_bool("False")
        False

    Raises:
        ValueError: For any other value, so ``"no"`` or ``1`` never turn a
            flag on by accident.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _BOOL_STRINGS:
        return _BOOL_STRINGS[value.strip().lower()]
    raise ValueError(f"expected a boolean, got {value!r}")


def _expect(value: Any, kind: type | tuple[type, ...], hint: Any) -> None:
    if not isinstance(value, kind):
        raise ValueError(
            f"expected {getattr(hint, '__name__', hint)}, "
            f"got {type(value).__name__} {value!r}"
        )
