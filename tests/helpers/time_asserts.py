"""Time related assertion helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


def assert_strict_utc(dt: datetime | None) -> None:
    """Fail unless ``dt`` is a tz-aware datetime labelled `timezone.utc`.

    Catches values converted to local time that merely happen to have a zero
    offset on the test machine.
    """
    assert dt is not None, "expected a timestamp, got None"
    assert dt.tzinfo is not None, "timestamp must be tz-aware"
    assert dt.utcoffset() == timedelta(0), f"expected UTC offset 0, got {dt.utcoffset()}"  # fmt: skip # pylint: disable=line-too-long
    assert dt.tzinfo is timezone.utc, "tzinfo should be datetime.timezone.utc"
