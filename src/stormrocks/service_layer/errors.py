"""Service-layer error definitions."""

# ============================================================================
#                           Join resolution errors
# ============================================================================


class JoinError(Exception):
    """Base class for join resolution errors.

    Every join error names the relation being resolved and the lookup id.
    """

    relation: str
    ref_id: str

    def __init__(self, message: str, relation: str, ref_id: str):
        super().__init__(message)
        self.relation = relation
        self.ref_id = ref_id


class UnknownCollectionError(JoinError):
    """Raised when a relation (or caller) names an unregistered collection."""

    collection: str

    def __init__(self, collection: str, relation: str = "", ref_id: str = ""):
        message = f"Collection '{collection}' is not registered"
        if relation:
            message += f" (relation '{relation}', id '{ref_id}')"
        super().__init__(message + ".", relation, ref_id)
        self.collection = collection


class UnknownEntityTypeError(JoinError):
    """Raised when a relation names an unregistered entity type."""

    type_name: str

    def __init__(self, type_name: str, relation: str = "", ref_id: str = ""):
        message = f"Entity type '{type_name}' is not registered"
        if relation:
            message += f" (relation '{relation}', id '{ref_id}')"
        super().__init__(message + ".", relation, ref_id)
        self.type_name = type_name


class JoinTypeError(JoinError):
    """Raised when a joins slot holds a value of the wrong kind."""

    expected: str
    actual: str

    def __init__(self, relation: str, ref_id: str, expected: str, actual: str):
        super().__init__(
            f"Join '{relation}' for id '{ref_id}' holds {actual}, expected {expected}.",
            relation,
            ref_id,
        )
        self.expected = expected
        self.actual = actual


class JoinFetchError(JoinError):
    """Raised when the store fails while fetching related rows."""

    type_name: str

    def __init__(self, relation: str, type_name: str, ref_id: str, reason: str):
        super().__init__(
            f"Fetching {type_name} for join '{relation}' with id '{ref_id}' "
            f"failed: {reason}",
            relation,
            ref_id,
        )
        self.type_name = type_name


# ============================================================================
#                           Registry errors
# ============================================================================


class RegistryError(Exception):
    """Base class for entity registry errors."""


class RegistryFrozenError(RegistryError):
    """Raised when registering after the registry was frozen."""

    def __init__(self, name: str):
        super().__init__(f"Cannot register '{name}': the registry is frozen.")
        self.name = name


class DuplicateRegistrationError(RegistryError):
    """Raised when a type or collection name is registered twice."""

    def __init__(self, kind: str, name: str):
        super().__init__(f"{kind} '{name}' is already registered.")
        self.kind = kind
        self.name = name


# ============================================================================
#                           Collection errors
# ============================================================================


class CollectionError(Exception):
    """Base class for collection access errors."""


class CollectionNotReadyError(CollectionError):
    """Raised when waiting for a collection's seeding times out."""

    def __init__(self, collection: str, timeout: float):
        super().__init__(
            f"Collection '{collection}' was not ready after {timeout:g} seconds."
        )
        self.collection = collection
        self.timeout = timeout


class EntityNotFoundError(CollectionError):
    """Raised when an entity cannot be found in its collection."""

    def __init__(self, collection: str, entity_id: str):
        super().__init__(f"{collection} with ID {entity_id} not found.")
        self.collection = collection
        self.entity_id = entity_id


# ============================================================================
#                           Transaction errors
# ============================================================================


class TransactionNotFoundError(Exception):
    """Raised when a transaction id is unknown (or already purged)."""

    def __init__(self, transaction_id: str):
        super().__init__(f"Transaction {transaction_id} not found.")
        self.transaction_id = transaction_id
