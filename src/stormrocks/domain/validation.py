"""Field validation for entities.

Two rules exist: *required* (the value must not be blank) and *email* (the
value must look like an email address). Failures are written into the
entity's ``errors`` sidecar under the field's document name, and a single
``ValidationError`` signals that at least one field failed.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from stormrocks.domain.errors import ValidationError
from stormrocks.domain.model import wire_fields

if TYPE_CHECKING:
    from stormrocks.domain.model import Entity

VALIDATION_REQUIRED = "ValidationFieldSpecificRequired"  # pragma: no mutate
VALIDATION_EMAIL = "ValidationFieldSpecificEmailRequired"  # pragma: no mutate

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z0-9-]{2,}$")


def is_blank(value: Any) -> bool:
    """True for ``None``, empty containers and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict, tuple)):
        return not value
    return False


def is_email(value: Any) -> bool:
    """True when ``value`` is a string shaped like an email address."""
    return isinstance(value, str) and bool(EMAIL_PATTERN.match(value.strip()))


def validate_and_clean(entity: Entity) -> None:
    """Validate ``entity`` and record failures in its errors sidecar.

    Previously recorded errors are cleared first. Email values that pass
    are stored with surrounding whitespace removed.

    Raises:
        ValidationError: If any field fails validation.
    """
    entity.errors.clear()
    for wf in wire_fields(type(entity)).values():
        value = getattr(entity, wf.attr)
        if wf.required and is_blank(value):
            entity.errors[wf.wire] = VALIDATION_REQUIRED
            continue
        if wf.email:
            if not is_email(value):
                entity.errors[wf.wire] = VALIDATION_EMAIL
            else:
                setattr(entity, wf.attr, value.strip())
    if entity.errors:
        raise ValidationError(entity.TYPE_NAME, entity.errors)
