"""Unit tests for entity collections, the ready gate and the query builder."""

import logging
import threading

import pytest

from stormrocks.adapters.document_store import MemoryDocumentStore
from stormrocks.adapters.id_generators import SimpleIdGenerator
from stormrocks.domain.entities import User
from stormrocks.service_layer.collections import (
    CollectionCache,
    EntityCollection,
    ReadyGate,
)
from stormrocks.service_layer.errors import CollectionNotReadyError, EntityNotFoundError
from tests.helpers.time_asserts import assert_strict_utc

# pylint: disable=magic-value-comparison,redefined-outer-name


@pytest.fixture
def users() -> EntityCollection[User]:
    """A ready Users collection over a fresh in-memory store."""
    return EntityCollection(
        User, MemoryDocumentStore(), id_generator=SimpleIdGenerator(24), ready=True
    )


@pytest.fixture
def people(users, make_user) -> dict[str, User]:
    """Four saved users with distinct names and login attempt counts."""
    saved = {}
    for first, last, attempts, locked in [
        ("Ada", "Lovelace", 0, False),
        ("Grace", "Hopper", 3, False),
        ("Alan", "Turing", 5, True),
        ("Edsger", "Dijkstra", 1, False),
    ]:
        saved[first] = users.save(
            make_user(first=first, last=last, login_attempts=attempts, locked=locked)
        )
    return saved


class TestReadyGate:
    """One-shot readiness signal."""

    @staticmethod
    def test_set_gate_returns_immediately() -> None:
        """Waiting on a set gate does not block."""
        gate = ReadyGate("Users")
        gate.set()
        gate.wait(timeout=0)
        assert gate.is_set()

    @staticmethod
    def test_timeout_raises() -> None:
        """A gate that never opens raises CollectionNotReadyError."""
        gate = ReadyGate("Users", warn_interval=0.01)
        with pytest.raises(CollectionNotReadyError) as excinfo:
            gate.wait(timeout=0.05)
        assert excinfo.value.collection == "Users"
        assert excinfo.value.timeout == 0.05

    @staticmethod
    def test_waiting_logs_warnings(caplog) -> None:
        """Long waits are reported at WARNING every interval."""
        gate = ReadyGate("Users", warn_interval=0.01)
        with caplog.at_level(logging.WARNING, logger="stormrocks.service_layer.collections"):  # fmt: skip # pylint: disable=line-too-long
            with pytest.raises(CollectionNotReadyError):
                gate.wait(timeout=0.1)
        assert "Users has not finished seeding" in caplog.text

    @staticmethod
    def test_waiters_wake_when_set() -> None:
        """A gate opened from another thread releases its waiters."""
        gate = ReadyGate("Users")
        timer = threading.Timer(0.05, gate.set)
        timer.start()
        try:
            gate.wait(timeout=5)
        finally:
            timer.cancel()
        assert gate.is_set()


class TestReadiness:
    """Collections block readers until they are marked ready."""

    @staticmethod
    def test_unready_collection_blocks_queries() -> None:
        """Queries on an unseeded collection time out."""
        collection = EntityCollection(
            User,
            MemoryDocumentStore(),
            id_generator=SimpleIdGenerator(),
            ready_timeout=0.05,
        )
        assert not collection.is_ready()
        with pytest.raises(CollectionNotReadyError):
            collection.all()

    @staticmethod
    def test_wait_false_bypasses_the_gate() -> None:
        """Seeding reads with ``wait=False`` while the gate is closed."""
        collection = EntityCollection(
            User, MemoryDocumentStore(), id_generator=SimpleIdGenerator()
        )
        assert collection.count(wait=False) == 0
        assert collection.get("nope", wait=False) is None

    @staticmethod
    def test_mark_ready_is_permanent() -> None:
        """Once ready, a collection stays ready."""
        collection = EntityCollection(
            User, MemoryDocumentStore(), id_generator=SimpleIdGenerator()
        )
        collection.mark_ready()
        collection.mark_ready()
        assert collection.is_ready()
        assert collection.all() == []


class TestWrites:
    """Saving, deleting and restoring entities."""

    @staticmethod
    def test_save_assigns_id_and_stamps(users) -> None:
        """A new entity gets an id, CreateDate and a later-or-equal UpdateDate."""
        user = users.save(User(first="Ada", last="Lovelace", email="ada@example.com"))

        assert len(user.id) == 24
        assert_strict_utc(user.create_date)
        assert_strict_utc(user.update_date)
        assert user.update_date >= user.create_date

    @staticmethod
    def test_round_trip(users, make_user) -> None:
        """A saved entity reads back with the same field values."""
        user = users.save(make_user(first="Grace", login_attempts=2))

        loaded = users.by_id(user.id)

        assert loaded == user
        assert loaded.update_date >= loaded.create_date

    @staticmethod
    def test_resave_keeps_create_date(users, make_user) -> None:
        """Saving again only moves UpdateDate."""
        user = users.save(make_user())
        created = user.create_date

        user.first = "Augusta"
        users.save(user)

        assert user.create_date == created
        assert users.by_id(user.id).first == "Augusta"

    @staticmethod
    def test_delete(users, make_user) -> None:
        """Deleting by entity or id removes the row once."""
        user = users.save(make_user())

        assert users.delete(user) is True
        assert users.delete(user.id) is False
        assert users.get(user.id) is None

    @staticmethod
    def test_restore_writes_verbatim(users, make_user) -> None:
        """`restore` puts a document back without restamping it."""
        user = users.save(make_user(first="Ada"))
        snapshot = user.to_document()
        user.first = "Changed"
        users.save(user)

        users.restore(snapshot)

        loaded = users.by_id(user.id)
        assert loaded.first == "Ada"
        assert loaded.update_date.isoformat() == snapshot["UpdateDate"]


class TestCache:
    """Read-through caching of lookups by id."""

    @staticmethod
    def test_get_populates_cache(users, make_user) -> None:
        """The first lookup caches the document; later ones skip the store."""
        user = users.save(make_user(first="Ada"))
        users.get(user.id)
        assert len(users.cache) == 1

        users.store.save(users.name, {**user.to_document(), "First": "Behind"})

        assert users.get(user.id).first == "Ada"

    @staticmethod
    def test_save_invalidates(users, make_user) -> None:
        """Saving through the collection drops the cached copy."""
        user = users.save(make_user(first="Ada"))
        users.get(user.id)

        user.first = "Augusta"
        users.save(user)

        assert users.get(user.id).first == "Augusta"

    @staticmethod
    def test_cache_returns_copies() -> None:
        """Mutating a returned document does not change the cached one."""
        cache = CollectionCache()
        cache.put("Users", "u1", {"Id": "u1", "First": "Ada"})

        cache.get("Users", "u1")["First"] = "Mutated"

        assert cache.get("Users", "u1") == {"Id": "u1", "First": "Ada"}

    @staticmethod
    def test_remove_and_clear() -> None:
        """Entries can be invalidated one by one or all at once."""
        cache = CollectionCache()
        cache.put("Users", "u1", {"Id": "u1"})
        cache.put("Users", "u2", {"Id": "u2"})

        cache.remove("Users", "u1")
        assert cache.get("Users", "u1") is None
        cache.clear()
        assert len(cache) == 0


class TestQueries:
    """Filtering, ordering, paging and projection."""

    @staticmethod
    def test_find(users, people) -> None:
        """`find` matches on equality."""
        (found,) = users.find("Last", "Hopper")
        assert found.id == people["Grace"].id

    @staticmethod
    def test_one(users, people) -> None:
        """`one` returns the first match or None."""
        assert users.one("Locked", True).first == "Alan"
        assert users.one("Last", "Nobody") is None

    @staticmethod
    def test_range(users, people) -> None:
        """`range` bounds are inclusive."""
        found = users.range("LoginAttempts", 1, 3, sort=["LoginAttempts"])
        assert [u.first for u in found] == ["Edsger", "Grace"]

    @staticmethod
    def test_all_sorted_and_paged(users, people) -> None:
        """Sorting happens before skip and limit."""
        found = users.all(sort=["-LoginAttempts"], skip=1, limit=2)
        assert [u.first for u in found] == ["Grace", "Edsger"]

    @staticmethod
    def test_at_least_and_at_most(users, people) -> None:
        """Open-ended ranges."""
        assert {u.first for u in users.query().at_least("LoginAttempts", 3).all()} == {
            "Grace",
            "Alan",
        }
        assert {u.first for u in users.query().at_most("LoginAttempts", 0).all()} == {
            "Ada"
        }

    @staticmethod
    def test_by_filter(users, people) -> None:
        """Equality, "in" and exclusion filters combine."""
        found = users.by_filter(
            {"Locked": False},
            in_filter={"First": ["Ada", "Grace", "Alan"]},
            exclude_filter={"Last": "Lovelace"},
        )
        assert [u.first for u in found] == ["Grace"]

    @staticmethod
    def test_exclude_many(users, people) -> None:
        """Excluding a set of values drops every one of them."""
        found = users.query().exclude("First", {"Ada", "Grace"}).order_by("First").all()
        assert [u.first for u in found] == ["Alan", "Edsger"]

    @staticmethod
    def test_count_ignores_paging(users, people) -> None:
        """`count` counts every match, not just one page."""
        assert users.query().where("Locked", False).limit(1).count() == 3
        assert users.count() == 4

    @staticmethod
    def test_select(users, people) -> None:
        """`select` loads only the listed fields plus the id."""
        found = users.query().select("First").where("Last", "Turing").first()
        assert found.id == people["Alan"].id
        assert found.first == "Alan"
        assert found.last == ""
        assert found.create_date is None

    @staticmethod
    def test_omit(users, people) -> None:
        """`omit` leaves the listed fields at their defaults."""
        found = users.query().omit("Email").by_id(people["Ada"].id)
        assert found.email == ""
        assert found.first == "Ada"

    @staticmethod
    def test_views(users, people) -> None:
        """`views` renders each result's views."""
        (found,) = users.query().views().where("First", "Alan").all()
        assert found.views["FullName"] == "Turing, Alan"
        assert found.views["Locked"] == "Enabled"

    @staticmethod
    def test_by_id_missing(users) -> None:
        """Looking up an unknown id raises EntityNotFoundError."""
        with pytest.raises(EntityNotFoundError) as excinfo:
            users.by_id("missing")
        assert str(excinfo.value) == "Users with ID missing not found."

    @staticmethod
    def test_context_requires_resolver(users) -> None:
        """Joins need a resolver; a bare collection refuses to build a context."""
        with pytest.raises(RuntimeError):
            users.context()

    @staticmethod
    def test_new_and_repr(users) -> None:
        """`new` builds an unsaved entity of the collection's type."""
        user = users.new(first="Ada")
        assert isinstance(user, User)
        assert user.id == ""
        assert repr(users) == "EntityCollection(Users)"
