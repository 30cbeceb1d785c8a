"""ID generators for StormRocks."""

import os
import threading
import time

from ulid import monotonic

from stormrocks.interfaces.id_generator import IdGenerator

# pylint: disable=too-few-public-methods


class ULIDGenerator(IdGenerator):
    """Thread-safe monotonic ULID generator.

    ULIDs are unique, lexicographically sortable identifiers.
    They generally consist of a timestamp and a random component.
    This generator uses the `ulid-py` library to create ULIDs.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def new_id(self) -> str:
        """Generate a new ULID (serialized across threads)."""
        with self._lock:
            return str(monotonic.new())


class ObjectIdGenerator(IdGenerator):
    """Thread-safe generator of 24-character hex object ids.

    The layout is the familiar document-database one: a 4-byte big-endian
    timestamp, 5 random bytes fixed for the life of the generator, then a
    3-byte counter. Ids from one generator sort by creation second.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._random = os.urandom(5)
        self._counter = int.from_bytes(os.urandom(3), "big")

    def new_id(self) -> str:
        """Generate a new object id."""
        with self._lock:
            self._counter = (self._counter + 1) % 0xFFFFFF
            counter = self._counter
        return (
            int(time.time()).to_bytes(4, "big")
            + self._random
            + counter.to_bytes(3, "big")
        ).hex()


class SimpleIdGenerator(IdGenerator):
    """A simple ID generator that produces sequential IDs.

    Note:
        Not suitable for production use; primarily for testing and demos.
    """

    def __init__(self, length: int = 26) -> None:
        self._counter = 0
        self._length = length
        self._lock = threading.Lock()

    def new_id(self) -> str:
        """Generate a new unique identifier."""
        with self._lock:
            self._counter += 1
            return f"{self._counter:0{self._length}d}"
