"""Domain-layer error definitions."""

from collections.abc import Mapping

# ============================================================================
#                           General domain errors
# ============================================================================


class DomainError(Exception):
    """Base class for domain-layer errors."""


class UnknownFieldError(DomainError):
    """Raised when a field is addressed by a name the entity does not declare."""

    def __init__(self, type_name: str, field_name: str) -> None:
        super().__init__(f"{type_name} has no field named '{field_name}'.")
        self.type_name = type_name
        self.field_name = field_name


# ============================================================================
#                           Validation errors
# ============================================================================


class ValidationError(DomainError):
    """Raised when an entity fails field validation.

    The per-field messages are also written to the entity's ``errors``
    sidecar; this exception only signals that validation failed.
    """

    def __init__(self, type_name: str, errors: Mapping[str, str]) -> None:
        fields = ", ".join(sorted(errors))
        super().__init__(f"{type_name} failed validation: {fields}.")
        self.type_name = type_name
        self.errors = dict(errors)


# ============================================================================
#                           Relation declaration errors
# ============================================================================


class RelationTagError(DomainError):
    """Raised when a relation declaration is not a valid five-part tag."""

    def __init__(self, relation: str, tag: str) -> None:
        super().__init__(
            f"Relation '{relation}' has malformed tag {tag!r}; expected "
            "'Collection,Type,LocalKey,true|false,ForeignKey'."
        )
        self.relation = relation
        self.tag = tag
