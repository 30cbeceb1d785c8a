"""Computed view fields.

A view is a read-only string rendered from one or more entity fields for
display (e.g. a user's ``FullName`` or a humanized ``UpdateFromNow``). Views
live in the entity's ``views`` sidecar and are never persisted.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stormrocks.domain.model import Entity

# pylint: disable=too-few-public-methods

DEFAULT_DATETIME_FORMAT = "%m/%d/%Y %I:%M %p"  # pragma: no mutate

_UNITS = (
    ("year", 365 * 86400),
    ("month", 30 * 86400),
    ("day", 86400),
    ("hour", 3600),
    ("minute", 60),
)


class View(abc.ABC):
    """Contract for a computed view field."""

    @abc.abstractmethod
    def render(self, entity: Entity, now: datetime) -> str:
        """Render the view for ``entity`` as of ``now``."""


@dataclass(frozen=True, slots=True)
class DateTimeView(View):
    """Format a timestamp field; empty when the timestamp is unset."""

    source: str
    fmt: str = DEFAULT_DATETIME_FORMAT

    def render(self, entity: Entity, now: datetime) -> str:
        value = entity.get_field(self.source)
        return value.strftime(self.fmt) if value else ""


@dataclass(frozen=True, slots=True)
class TimeFromNowView(View):
    """Render a timestamp relative to now ("3 days ago", "in 2 hours")."""

    source: str

    def render(self, entity: Entity, now: datetime) -> str:
        value = entity.get_field(self.source)
        if not value:
            return ""
        return humanize_delta(now - value)


@dataclass(frozen=True, slots=True)
class ConcatenateView(View):
    """Join several string fields, skipping blanks."""

    sources: tuple[str, ...]
    separator: str = ", "

    def render(self, entity: Entity, now: datetime) -> str:
        parts = (str(entity.get_field(source) or "") for source in self.sources)
        return self.separator.join(part for part in parts if part)


@dataclass(frozen=True, slots=True)
class EnabledDisabledView(View):
    """Render a boolean field as ``Enabled`` / ``Disabled``."""

    source: str

    def render(self, entity: Entity, now: datetime) -> str:
        return "Enabled" if entity.get_field(self.source) else "Disabled"


def humanize_delta(delta: timedelta) -> str:
    """Describe a time difference the way a person would say it.

    Positive deltas are in the past ("2 hours ago"), negative ones in the
    future ("in 2 hours").
    """
    seconds = int(delta.total_seconds())
    future = seconds < 0
    seconds = abs(seconds)
    phrase = "a few seconds"
    for unit, size in _UNITS:
        if seconds >= size:
            count = seconds // size
            phrase = f"{count} {unit}{'' if count == 1 else 's'}"
            break
    return f"in {phrase}" if future else f"{phrase} ago"


def render_views(entity: Entity, now: datetime | None = None) -> None:
    """Populate ``entity.views`` from the views its type declares."""
    now = now or datetime.now(timezone.utc)
    for name, view in type(entity).VIEWS.items():
        entity.views[name] = view.render(entity, now)
