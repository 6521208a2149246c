from __future__ import annotations

import pytest

from craft_core.core.errors import AlreadyLinkedError, NotFoundError, PersistenceError
from craft_core.core.links import IdentityLinkStore
from craft_core.core.types import AccountConnection


def test_link_uniqueness_in_both_directions(memory_storage):
    store = IdentityLinkStore(memory_storage)
    store.link("uuid-1", 42)

    with pytest.raises(AlreadyLinkedError):
        store.link("uuid-2", 42)
    with pytest.raises(AlreadyLinkedError):
        store.link("uuid-1", 99)

    assert len(store) == 1
    assert memory_storage.links == {AccountConnection("uuid-1", 42)}


def test_lookups_are_mutual_inverses(memory_storage):
    store = IdentityLinkStore(memory_storage)
    store.link("uuid-1", 1)
    store.link("uuid-2", 2)

    for connection in store.all():
        assert store.find_by_chat_id(connection.discord_id) == connection
        assert store.find_by_game_id(connection.minecraft_id) == connection


def test_unlink_clears_both_sides_and_allows_relink(memory_storage):
    store = IdentityLinkStore(memory_storage)
    store.link("uuid-1", 42)

    removed = store.unlink_chat_id(42)
    assert removed == AccountConnection("uuid-1", 42)
    with pytest.raises(NotFoundError):
        store.find_by_game_id("uuid-1")
    with pytest.raises(NotFoundError):
        store.find_by_chat_id(42)
    assert store.unlink_game_id("uuid-1") is None

    store.link("uuid-1", 99)
    assert store.find_by_chat_id(99).minecraft_id == "uuid-1"


def test_every_mutation_persists(memory_storage):
    store = IdentityLinkStore(memory_storage)
    store.link("uuid-1", 42)
    store.unlink_game_id("uuid-1")
    assert memory_storage.saves == 2
    assert memory_storage.links == set()


def test_failed_persist_rolls_back_link(memory_storage):
    store = IdentityLinkStore(memory_storage)
    memory_storage.fail_save = True

    with pytest.raises(PersistenceError):
        store.link("uuid-1", 42)
    assert store.get_by_chat_id(42) is None
    assert store.get_by_game_id("uuid-1") is None


def test_failed_persist_rolls_back_unlink(memory_storage):
    store = IdentityLinkStore(memory_storage)
    store.link("uuid-1", 42)
    memory_storage.fail_save = True

    with pytest.raises(PersistenceError):
        store.unlink_chat_id(42)
    assert store.find_by_game_id("uuid-1").discord_id == 42


def test_load_replaces_state(memory_storage):
    memory_storage.links = {AccountConnection("uuid-7", 7)}
    store = IdentityLinkStore(memory_storage)
    assert store.load() == 1
    assert store.loaded
    assert store.find_by_chat_id(7).minecraft_id == "uuid-7"


def test_load_failure_is_persistence_error(memory_storage):
    memory_storage.fail_load = True
    store = IdentityLinkStore(memory_storage)
    with pytest.raises(PersistenceError):
        store.load()
    assert not store.loaded


def test_load_rejects_duplicate_ids(memory_storage):
    memory_storage.links = {AccountConnection("uuid-1", 1), AccountConnection("uuid-2", 1)}
    with pytest.raises(PersistenceError):
        IdentityLinkStore(memory_storage).load()
