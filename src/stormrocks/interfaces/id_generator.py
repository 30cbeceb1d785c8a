"""Port for entity id generation.

Collections ask for an id when an entity is saved without one, and the
seeding pipeline does the same for seed records that omit ``Id``.
"""

import abc

# pylint: disable=too-few-public-methods


class IdGenerator(abc.ABC):
    """Source of entity ids; implementations must be safe to share across threads."""

    @abc.abstractmethod
    def new_id(self) -> str:
        """Return a fresh, non-empty id never handed out before by this generator."""
