import asyncio
import sqlite3

import pytest

from streamvault.backend import BackendChannel, BackendGateway
from streamvault.favourites import (
    FAVOURITES_KEY,
    BackendFavourites,
    FavouritesStore,
    LocalFavourites,
    select_favourites_adapter,
)
from streamvault.storage import KeyValueStore

from conftest import InMemoryBackend


class RecordingStorage(KeyValueStore):
    def __init__(self, initial=None, *, fail_writes: bool = False) -> None:
        super().__init__()
        self.values: dict[str, str] = dict(initial or {})
        self.writes: list[str] = []
        self.fail_writes = fail_writes

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value):
        if self.fail_writes:
            raise sqlite3.OperationalError("database is locked")
        self.writes.append(value)
        self.values[key] = value


def test_toggle_twice_restores_membership_and_persists_each_state() -> None:
    storage = RecordingStorage({FAVOURITES_KEY: '["m3u-1"]'})
    store = FavouritesStore(storage)
    store.load()

    assert store.toggle("m3u-0") is True
    assert store.ids == {"m3u-0", "m3u-1"}
    assert store.toggle("m3u-0") is False
    assert store.ids == {"m3u-1"}
    assert storage.writes == ['["m3u-0", "m3u-1"]', '["m3u-1"]']


def test_load_round_trips_through_sqlite(storage) -> None:
    store = FavouritesStore(storage)
    store.load()
    store.toggle("manual-1-0")
    store.toggle("m3u-3")

    reloaded = FavouritesStore(storage)
    assert reloaded.load() == {"manual-1-0", "m3u-3"}
    assert reloaded.contains("m3u-3")
    assert "m3u-4" not in reloaded


def test_absent_data_loads_empty(storage) -> None:
    store = FavouritesStore(storage)
    assert store.load() == frozenset()
    assert len(store) == 0


def test_corrupt_data_resets_to_empty() -> None:
    for payload in ("{not json", '{"a": 1}', "[1, 2]", "null"):
        store = FavouritesStore(RecordingStorage({FAVOURITES_KEY: payload}))
        assert store.load() == frozenset()


def test_unreadable_database_resets_to_empty(tmp_path) -> None:
    path = tmp_path / "storage.sqlite"
    path.write_bytes(b"this is not a sqlite database" * 10)
    store = FavouritesStore(KeyValueStore(path))
    assert store.load() == frozenset()


def test_persistence_failure_is_swallowed() -> None:
    store = FavouritesStore(RecordingStorage(fail_writes=True))
    store.load()
    assert store.toggle("m3u-0") is True
    assert store.ids == {"m3u-0"}


def test_custom_key_is_used() -> None:
    storage = RecordingStorage()
    store = FavouritesStore(storage, key="other")
    store.toggle("a")
    assert storage.values == {"other": '["a"]'}


def test_adapter_selection_follows_authentication_and_catalog(favourites_store) -> None:
    backend = InMemoryBackend()
    signed_in = BackendGateway(backend, authenticated=True)
    assert isinstance(select_favourites_adapter(favourites_store, None), LocalFavourites)
    assert isinstance(
        select_favourites_adapter(
            favourites_store, BackendGateway(backend), backend_catalog=True
        ),
        LocalFavourites,
    )
    assert isinstance(select_favourites_adapter(favourites_store, signed_in), LocalFavourites)
    assert isinstance(
        select_favourites_adapter(favourites_store, signed_in, backend_catalog=True),
        BackendFavourites,
    )


def test_backend_favourites_do_not_touch_local_store(favourites_store) -> None:
    backend = InMemoryBackend([BackendChannel(id=3, name="Three", stream_url="http://3")])
    adapter = BackendFavourites(BackendGateway(backend, authenticated=True))

    async def scenario():
        added = await adapter.toggle("3")
        ids_after_add = adapter.ids
        removed = await adapter.toggle(" 3 ")
        return added, ids_after_add, removed

    added, ids_after_add, removed = asyncio.run(scenario())

    assert added is True
    assert ids_after_add == {"3"}
    assert removed is False
    assert adapter.ids == frozenset()
    assert favourites_store.ids == frozenset()


def test_local_adapter_delegates_to_store(favourites_store) -> None:
    adapter = LocalFavourites(favourites_store)
    assert asyncio.run(adapter.toggle("m3u-0")) is True
    assert asyncio.run(adapter.refresh()) == {"m3u-0"}
    assert favourites_store.ids == {"m3u-0"}


@pytest.mark.parametrize("channel_id", ["m3u-3", "manual-1-0", "-3"])
def test_backend_favourites_reject_non_backend_ids(channel_id: str) -> None:
    backend = InMemoryBackend([BackendChannel(id=3, name="Three", stream_url="http://3")])
    adapter = BackendFavourites(BackendGateway(backend, authenticated=True))

    with pytest.raises(ValueError):
        asyncio.run(adapter.toggle(channel_id))
    assert backend.favourites == []
