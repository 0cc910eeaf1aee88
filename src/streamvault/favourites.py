"""Favourite channel tracking.

Two independent mechanisms exist and are never merged:

* :class:`FavouritesStore` keeps opaque channel-id strings in local storage.
  It works for any catalog and needs no identity.
* The backend keeps per-identity favourites keyed by 64-bit channel ids.

:func:`select_favourites_adapter` picks one of them behind the common
:class:`FavouritesAdapter` interface. The backend set is authoritative only
when the caller is authenticated and the catalog itself comes from the
backend, so every catalog id is a backend key. Otherwise the local set is
authoritative. Neither set is ever written on behalf of the other.
"""
from __future__ import annotations

import json
import sqlite3
from typing import Optional, Protocol

from .backend import BackendGateway
from .logging_utils import get_logger
from .storage import KeyValueStore

log = get_logger(__name__)

FAVOURITES_KEY = "streamvault_favourites"


class FavouritesStore:
    """Persisted set of favourited channel ids."""

    def __init__(self, storage: KeyValueStore, *, key: str = FAVOURITES_KEY) -> None:
        self._storage = storage
        self._key = key
        self._ids: set[str] = set()

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(self._ids)

    def __contains__(self, channel_id: object) -> bool:
        return channel_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def contains(self, channel_id: str) -> bool:
        return channel_id in self._ids

    def load(self) -> frozenset[str]:
        """Replace the in-memory set with the persisted one.

        Missing or unreadable data yields an empty set.
        """

        self._ids = set()
        try:
            raw = self._storage.get(self._key)
        except (sqlite3.Error, OSError) as exc:
            log.warning("Could not read favourites from storage: %s", exc)
            return self.ids
        if raw is None:
            return self.ids
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            log.warning("Discarding corrupt favourites payload")
            return self.ids
        if not isinstance(payload, list) or not all(isinstance(item, str) for item in payload):
            log.warning("Discarding favourites payload of unexpected shape")
            return self.ids
        self._ids = set(payload)
        log.info("Loaded %d favourite(s)", len(self._ids))
        return self.ids

    def toggle(self, channel_id: str) -> bool:
        """Flip membership of *channel_id*, persist, and return the new state."""

        if channel_id in self._ids:
            self._ids.remove(channel_id)
            present = False
        else:
            self._ids.add(channel_id)
            present = True
        self._persist()
        return present

    def _persist(self) -> None:
        try:
            self._storage.set(self._key, json.dumps(sorted(self._ids)))
        except (sqlite3.Error, OSError) as exc:
            log.warning("Failed to persist favourites: %s", exc)


class FavouritesAdapter(Protocol):
    """Common interface over the local and backend favourites."""

    @property
    def ids(self) -> frozenset[str]: ...

    async def refresh(self) -> frozenset[str]: ...

    async def toggle(self, channel_id: str) -> bool: ...


class LocalFavourites:
    """Adapter over :class:`FavouritesStore`."""

    def __init__(self, store: FavouritesStore) -> None:
        self._store = store

    @property
    def ids(self) -> frozenset[str]:
        return self._store.ids

    async def refresh(self) -> frozenset[str]:
        return self._store.ids

    async def toggle(self, channel_id: str) -> bool:
        return self._store.toggle(channel_id)


class BackendFavourites:
    """Adapter over the backend's identity-scoped favourites.

    Ids are the bare decimal backend keys used by the backend catalog.
    """

    def __init__(self, gateway: BackendGateway) -> None:
        self._gateway = gateway
        self._ids: frozenset[str] = frozenset()

    @property
    def ids(self) -> frozenset[str]:
        return self._ids

    async def refresh(self) -> frozenset[str]:
        channels = await self._gateway.list_favourites()
        self._ids = frozenset(str(channel.id) for channel in channels)
        return self._ids

    async def toggle(self, channel_id: str) -> bool:
        text = channel_id.strip()
        if not (text.isascii() and text.isdigit()):
            raise ValueError(f"Channel {channel_id!r} is not a backend channel")
        present = await self._gateway.toggle_favourite(int(text))
        await self.refresh()
        return present


def select_favourites_adapter(
    store: FavouritesStore,
    gateway: Optional[BackendGateway],
    *,
    backend_catalog: bool = False,
) -> FavouritesAdapter:
    """Return the authoritative favourites adapter.

    Parsed and manual ids are per-session strings with no backend meaning, so
    backend favourites are only used over a backend catalog.
    """

    if (
        backend_catalog
        and gateway is not None
        and gateway.available
        and gateway.authenticated
    ):
        log.debug("Using backend favourites")
        return BackendFavourites(gateway)
    log.debug("Using local favourites")
    return LocalFavourites(store)


__all__ = [
    "BackendFavourites",
    "FAVOURITES_KEY",
    "FavouritesAdapter",
    "FavouritesStore",
    "LocalFavourites",
    "select_favourites_adapter",
]
