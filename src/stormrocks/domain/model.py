"""Entity model shared by every StormRocks record type.

An entity is a mutable dataclass with:

- named, typed fields addressed from the outside by their PascalCase
  document name (``DefaultAccountId``), mapped onto snake_case attributes;
- an ``errors`` sidecar (document field name -> validation message);
- a ``joins`` sidecar (relation name -> related entity or ``JoinItems``);
- a ``views`` sidecar (view name -> rendered string).

Concrete entity classes declare their collection, seed directory, relation
tags and views as class variables. Sidecars and ``BootstrapMeta`` are never
persisted; everything else round-trips through ``to_document`` and
``from_document``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import datetime
from functools import cache
from typing import TYPE_CHECKING, Any, ClassVar, get_args, get_origin, get_type_hints

from stormrocks.domain.errors import UnknownFieldError
from stormrocks.domain.relations import RelationSpec, relation_specs
from stormrocks.domain.utils import decode_value, encode_value, to_wire_name
from stormrocks.domain.views import View, render_views

if TYPE_CHECKING:
    from stormrocks.service_layer.joins import QueryContext

# pylint: disable=too-many-instance-attributes

WIRE = "wire"  # pragma: no mutate
REQUIRED = "required"  # pragma: no mutate
EMAIL = "email"  # pragma: no mutate
UNIQUE = "unique"  # pragma: no mutate
PERSIST = "persist"  # pragma: no mutate
SIDECAR = "sidecar"  # pragma: no mutate

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def attribute(  # pylint: disable=too-many-arguments
    default: Any = "",
    *,
    factory: Any = None,
    wire: str | None = None,
    required: bool = False,
    email: bool = False,
    unique: bool = False,
    persist: bool = True,
) -> Any:
    """Declare an entity or value-object field.

    Args:
        default: Default value (ignored when ``factory`` is given).
        factory: Zero-argument callable producing the default (for lists).
        wire: Document key; derived from the attribute name when omitted.
        required: The field must be non-blank to pass validation.
        email: The field must hold an email address to pass validation.
        unique: The field is a natural key (informational).
        persist: When False the field is read from documents but never written.

    Returns:
        A ``dataclasses.field`` carrying the declaration as metadata.
    """
    metadata = {
        WIRE: wire,
        REQUIRED: required,
        EMAIL: email,
        UNIQUE: unique,
        PERSIST: persist,
    }
    if factory is not None:
        return field(default_factory=factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def sidecar() -> Any:
    """Declare a non-persisted, per-instance sidecar mapping."""
    return field(default_factory=dict, compare=False, repr=False, metadata={SIDECAR: True})  # fmt: skip # pylint: disable=line-too-long


@dataclass(frozen=True, slots=True)
class WireField:
    """A declared field as seen from the document side."""

    attr: str
    wire: str
    hint: Any
    required: bool
    email: bool
    unique: bool
    persist: bool


@cache
def wire_fields(cls: type) -> dict[str, WireField]:
    """Return the declared fields of a document dataclass keyed by wire name."""
    hints = get_type_hints(cls)
    declared: dict[str, WireField] = {}
    for f in fields(cls):
        if f.metadata.get(SIDECAR):
            continue
        wire = f.metadata.get(WIRE) or to_wire_name(f.name)
        declared[wire] = WireField(
            attr=f.name,
            wire=wire,
            hint=hints.get(f.name, f.type),
            required=bool(f.metadata.get(REQUIRED)),
            email=bool(f.metadata.get(EMAIL)),
            unique=bool(f.metadata.get(UNIQUE)),
            persist=f.metadata.get(PERSIST, True),
        )
    return declared


class Document:
    """Mixin giving a dataclass a PascalCase document codec."""

    __slots__ = ()

    def to_document(self) -> dict[str, Any]:
        """Render the persisted fields as a JSON-compatible mapping."""
        return {
            wf.wire: encode_value(getattr(self, wf.attr))
            for wf in wire_fields(type(self)).values()
            if wf.persist
        }

    @classmethod
    def from_document(cls, document: Mapping[str, Any]):
        """Build an instance from a document, ignoring unknown keys.

        ``null`` values leave the field at its default.
        """
        kwargs = {}
        for wire, wf in wire_fields(cls).items():
            value = decode_value(wf.hint, document.get(wire))
            if value is not None:
                kwargs[wf.attr] = value
        return cls(**kwargs)


# ============================================================================
#                               Value objects
# ============================================================================


@dataclass(frozen=True, slots=True)
class BootstrapMeta(Document):
    """Per-record seeding directives carried inside a seed payload."""

    version: int = attribute(0)
    domain: str = attribute("")
    domains: list[str] = attribute(factory=list)
    product_name: str = attribute("")
    product_names: list[str] = attribute(factory=list)
    release_mode: str = attribute("")
    delete_row: bool = attribute(False)
    always_update: bool = attribute(False)


@dataclass(slots=True)
class JoinItems:
    """Container for a many-valued relation.

    ``items`` stays ``None`` when only the count was requested.
    """

    count: int = 0
    items: list[Entity] | None = None

    def to_json(self) -> dict[str, Any]:
        """Render as ``{"Count": n, "Items": [...] | null}``."""
        return {
            "Count": self.count,
            "Items": None
            if self.items is None
            else [item.to_json() for item in self.items],
        }


@dataclass(frozen=True, slots=True)
class FieldInfo:
    """Description of one entity field for forms and API metadata."""

    name: str
    label: str
    data_type: str
    is_view: bool = False
    validation: tuple[str, ...] = ()


# ============================================================================
#                               Entity base
# ============================================================================


@dataclass(kw_only=True)
class Entity(Document):
    """Base class for all persisted record types."""

    TYPE_NAME: ClassVar[str] = ""
    COLLECTION: ClassVar[str] = ""
    SEED_DIRECTORY: ClassVar[str] = ""
    RELATIONS: ClassVar[Mapping[str, str]] = {}
    VIEWS: ClassVar[Mapping[str, View]] = {}

    id: str = attribute("")
    create_date: datetime | None = attribute(None)
    update_date: datetime | None = attribute(None)
    last_update_id: str = attribute("")
    bootstrap_meta: BootstrapMeta | None = attribute(None, persist=False)

    errors: dict[str, str] = sidecar()
    joins: dict[str, Any] = sidecar()
    views: dict[str, str] = sidecar()

    # --- identity ---

    def get_id(self) -> str:
        """Return the entity id (empty before the first save)."""
        return self.id

    # --- field access by document name ---

    @classmethod
    def field_names(cls) -> list[str]:
        """Document names of every declared field, in declaration order."""
        return list(wire_fields(cls))

    def get_field(self, name: str) -> Any:
        """Return the value of the field with document name ``name``.

        Raises:
            UnknownFieldError: If the entity declares no such field.
        """
        return getattr(self, self._wire_field(name).attr)

    def set_field(self, name: str, value: Any) -> None:
        """Assign the field with document name ``name``.

        Raises:
            UnknownFieldError: If the entity declares no such field.
        """
        setattr(self, self._wire_field(name).attr, value)

    def _wire_field(self, name: str) -> WireField:
        try:
            return wire_fields(type(self))[name]
        except KeyError:
            raise UnknownFieldError(self.TYPE_NAME, name) from None

    # --- relations ---

    @classmethod
    def relations(cls) -> dict[str, RelationSpec]:
        """Parsed relation declarations keyed by relation name."""
        return relation_specs(cls)

    def join_fields(
        self, path: str, context: QueryContext, recursion_budget: int
    ) -> None:
        """Hydrate the relations named by ``path`` into the joins sidecar.

        Args:
            path: Dot-separated relation path, ``"All"``, or empty for a no-op.
            context: Query context holding the resolver and view options.
            recursion_budget: Maximum number of relation levels to assign.

        Raises:
            JoinError: The first resolution failure encountered.
        """
        context.resolver.join_fields(self, path, context, recursion_budget)

    # --- validation, views, reflection ---

    def validate_and_clean(self) -> None:
        """Validate declared constraints into the errors sidecar.

        Raises:
            ValidationError: If any field fails validation.
        """
        # Local import: validation depends on this module.
        from stormrocks.domain.validation import (  # pylint: disable=import-outside-toplevel
            validate_and_clean,
        )

        validate_and_clean(self)

    def render_views(self, now: datetime | None = None) -> None:
        """Populate the views sidecar."""
        render_views(self, now)

    @classmethod
    def describe_fields(cls) -> list[FieldInfo]:
        """Describe every field and view the entity exposes."""
        described = [
            FieldInfo(
                name=wf.wire,
                label=camel_label(wf.wire),
                data_type=type_label(wf.hint),
                validation=tuple(
                    rule
                    for rule, enabled in ((REQUIRED, wf.required), (EMAIL, wf.email))
                    if enabled
                ),
            )
            for wf in wire_fields(cls).values()
            if wf.persist
        ]
        described.extend(
            FieldInfo(name=name, label=camel_label(name), data_type="string", is_view=True)  # fmt: skip # pylint: disable=line-too-long
            for name in cls.VIEWS
        )
        return described

    # --- rendering ---

    def to_json(self) -> dict[str, Any]:
        """Render the full view model: document plus Errors, Views and Joins."""
        rendered = self.to_document()
        rendered["Errors"] = dict(self.errors)
        rendered["Views"] = dict(self.views)
        rendered["Joins"] = {
            name: value.to_json() for name, value in self.joins.items()
        }
        return rendered


def camel_label(name: str) -> str:
    """Turn a PascalCase name into a human label ("Default account id")."""
    words = _CAMEL_BOUNDARY.split(name)
    return " ".join([words[0]] + [word.lower() for word in words[1:]])


def type_label(hint: Any) -> str:
    """Short, language-neutral name for a field's type."""
    origin = get_origin(hint)
    if origin is list:
        return "list"
    if origin is dict:
        return "object"
    if origin is not None:
        args = [arg for arg in get_args(hint) if arg is not type(None)]
        return type_label(args[0]) if len(args) == 1 else "any"
    return {
        str: "string",
        int: "int",
        float: "float",
        bool: "bool",
        datetime: "datetime",
    }.get(hint, "object")
