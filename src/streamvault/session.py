"""Event-driven browser state tying the catalog, favourites and filters together."""
from __future__ import annotations

from dataclasses import replace
from functools import partial
from typing import Awaitable, Callable, List, Optional

from .backend import BackendError, BackendGateway, PlaylistEntry
from .catalog import ChannelCatalog, build_backend_catalog, build_catalog
from .config import AppConfig
from .favourites import FavouritesAdapter, FavouritesStore, select_favourites_adapter
from .fetcher import PlaylistFetchError, SourceLoader, fetch_playlist_text
from .filters import (
    AllChannels,
    FavouritesOnly,
    FilterMode,
    FilterState,
    PlaylistSelection,
    apply_filter_state,
)
from .logging_utils import get_logger
from .manual import ManualChannelRegistry
from .membership import catalog_id_to_backend, find_playlist, resolve_playlist_members
from .playlist import ChannelRecord

log = get_logger(__name__)


class BrowserSession:
    """Hold the browser state and apply user events to it one at a time.

    With ``backend_catalog=True`` the backend's channel list is the whole
    catalog; otherwise manual channels are merged ahead of the channels
    parsed from the remote playlist.
    """

    def __init__(
        self,
        config: AppConfig,
        favourites_store: FavouritesStore,
        *,
        gateway: Optional[BackendGateway] = None,
        backend_catalog: bool = False,
        registry: Optional[ManualChannelRegistry] = None,
        fetch: Optional[Callable[[str], Awaitable[str]]] = None,
    ) -> None:
        if backend_catalog and (gateway is None or not gateway.available):
            raise ValueError("A backend catalog requires an available backend")
        self.config = config
        self.gateway = gateway
        self.backend_catalog = backend_catalog
        self.registry = registry or ManualChannelRegistry()
        self._store = favourites_store
        self._favourites: FavouritesAdapter = select_favourites_adapter(
            favourites_store, gateway, backend_catalog=backend_catalog
        )
        if fetch is None:
            fetch = partial(
                fetch_playlist_text,
                relay_url=config.relay_url,
                timeout=config.fetch_timeout,
                user_agent=config.user_agent,
            )
        self._loader = SourceLoader(fetch)
        self._parsed: List[ChannelRecord] = []
        self._backend_channels: List[ChannelRecord] = []
        self.catalog = ChannelCatalog()
        self.playlists: List[PlaylistEntry] = []
        self.filters = FilterState()
        self.selected_id: Optional[str] = None
        self.source_url: Optional[str] = None
        self.error: Optional[str] = None
        self.loading = False
        self._pending_loads = 0

    # -- startup -----------------------------------------------------------

    async def start(self) -> None:
        """Load persisted favourites and the initial catalog."""

        self._store.load()
        await self._favourites.refresh()
        await self.refresh_playlists()
        if self.backend_catalog:
            await self.refresh_backend_catalog()
        else:
            await self.load_source(self.config.playlist_url)

    # -- catalog -----------------------------------------------------------

    async def load_source(self, url: Optional[str] = None) -> bool:
        """Fetch and parse *url*; return True if the catalog was rebuilt.

        A failed load keeps the previous catalog and records the error
        message. A load superseded by a newer request changes nothing.
        """

        target = (url or self.config.playlist_url).strip()
        self._pending_loads += 1
        self.loading = True
        try:
            result = await self._loader.load(target)
        except PlaylistFetchError as exc:
            self.error = str(exc)
            log.error("Could not load playlist %s: %s", target, exc)
            return False
        finally:
            self._pending_loads -= 1
            self.loading = self._pending_loads > 0
        if result is None:
            return False
        self.error = None
        self.source_url = result.url
        self._parsed = result.channels
        self._rebuild()
        return True

    async def refresh_backend_catalog(self) -> None:
        if self.gateway is None:
            return
        channels = await self.gateway.list_channels()
        self._backend_channels = list(build_backend_catalog(channels))
        self._rebuild()

    def add_manual_channel(
        self,
        name: str,
        stream_url: str,
        *,
        thumbnail_url: Optional[str] = None,
        language: Optional[str] = None,
        country: Optional[str] = None,
    ) -> ChannelRecord:
        record = self.registry.add(
            name,
            stream_url,
            thumbnail_url=thumbnail_url,
            language=language,
            country=country,
        )
        self._rebuild()
        return record

    def _rebuild(self) -> None:
        if self.backend_catalog:
            self.catalog = ChannelCatalog(self._backend_channels)
        else:
            self.catalog = build_catalog(self.registry.channels, self._parsed)
        if self.selected_id is not None and self.selected_id not in self.catalog:
            log.debug("Clearing stale selection %s after catalog rebuild", self.selected_id)
            self.selected_id = None
        stale = self.stale_favourites()
        if stale:
            log.info("%d favourite(s) do not resolve in the current catalog", len(stale))
        log.info("Catalog rebuilt with %d channel(s)", len(self.catalog))

    # -- favourites ----------------------------------------------------------

    @property
    def favourite_ids(self) -> frozenset[str]:
        return self._favourites.ids

    def is_favourite(self, channel_id: str) -> bool:
        return channel_id in self._favourites.ids

    async def toggle_favourite(self, channel_id: str) -> bool:
        present = await self._favourites.toggle(channel_id)
        log.info(
            "Channel %s %s favourites", channel_id, "added to" if present else "removed from"
        )
        return present

    def stale_favourites(self) -> frozenset[str]:
        """Return favourite ids that no longer match a catalog entry."""

        favourites = self._favourites.ids
        return favourites - self.catalog.revalidate(favourites)

    def favourite_count(self) -> int:
        return len(self._favourites.ids)

    # -- playlists -----------------------------------------------------------

    async def refresh_playlists(self) -> List[PlaylistEntry]:
        if self.gateway is None:
            self.playlists = []
        else:
            self.playlists = await self.gateway.list_playlists()
        return self.playlists

    def _require_gateway(self) -> BackendGateway:
        if self.gateway is None:
            raise BackendError("Backend not available")
        return self.gateway

    async def create_playlist(self, name: str) -> int:
        playlist_id = await self._require_gateway().create_playlist(name)
        await self.refresh_playlists()
        return playlist_id

    async def delete_playlist(self, playlist_id: int) -> None:
        await self._require_gateway().delete_playlist(playlist_id)
        mode = self.filters.mode
        if isinstance(mode, PlaylistSelection) and mode.playlist_id == playlist_id:
            self.set_mode(AllChannels())
        await self.refresh_playlists()

    def _backend_channel_id(self, channel_id: str) -> int:
        backend_id = catalog_id_to_backend(channel_id)
        if backend_id is None:
            raise ValueError(f"Channel {channel_id!r} cannot be stored in a playlist")
        return backend_id

    async def add_to_playlist(self, playlist_id: int, channel_id: str) -> None:
        gateway = self._require_gateway()
        await gateway.add_channel_to_playlist(playlist_id, self._backend_channel_id(channel_id))
        await self.refresh_playlists()

    async def remove_from_playlist(self, playlist_id: int, channel_id: str) -> None:
        gateway = self._require_gateway()
        await gateway.remove_channel_from_playlist(
            playlist_id, self._backend_channel_id(channel_id)
        )
        await self.refresh_playlists()

    def is_in_playlist(self, playlist_id: int, channel_id: str) -> bool:
        return channel_id in resolve_playlist_members(
            playlist_id, self.playlists, self.catalog
        )

    def playlist_members(self) -> frozenset[str]:
        mode = self.filters.mode
        if not isinstance(mode, PlaylistSelection):
            return frozenset()
        return resolve_playlist_members(mode.playlist_id, self.playlists, self.catalog)

    # -- filters -------------------------------------------------------------

    def set_mode(self, mode: FilterMode) -> None:
        self.filters = self.filters.with_mode(mode)

    def set_language(self, language: str) -> None:
        self.filters = replace(self.filters, language=language)

    def set_country(self, country: str) -> None:
        self.filters = replace(self.filters, country=country)

    def set_search(self, search: str) -> None:
        self.filters = replace(self.filters, search=search)

    def visible_channels(self) -> List[ChannelRecord]:
        return apply_filter_state(
            self.catalog, self.filters, self._favourites.ids, self.playlist_members()
        )

    def total_count(self) -> int:
        """Return the size of the unfaceted set for the current mode."""

        mode = self.filters.mode
        if isinstance(mode, FavouritesOnly):
            return self.favourite_count()
        if isinstance(mode, PlaylistSelection):
            playlist = find_playlist(mode.playlist_id, self.playlists)
            return len(playlist.channel_ids) if playlist else 0
        return len(self.catalog)

    def empty_message(self) -> str:
        if isinstance(self.filters.mode, FavouritesOnly):
            gateway = self.gateway
            if self.backend_catalog and gateway is not None and not gateway.authenticated:
                return "Sign in to save favourites"
            return "No favourites yet"
        if isinstance(self.filters.mode, PlaylistSelection):
            return "No channels in this playlist"
        return "No channels found"

    # -- selection & profile -------------------------------------------------

    def select_channel(self, channel_id: str) -> Optional[ChannelRecord]:
        """Select *channel_id*, or clear the selection if it is already selected."""

        if self.selected_id == channel_id or channel_id not in self.catalog:
            self.selected_id = None
            return None
        self.selected_id = channel_id
        return self.catalog.get(channel_id)

    @property
    def selected_channel(self) -> Optional[ChannelRecord]:
        if self.selected_id is None:
            return None
        return self.catalog.get(self.selected_id)

    async def needs_profile_setup(self) -> bool:
        if self.gateway is None or not self.gateway.authenticated:
            return False
        return await self.gateway.get_profile() is None

    async def save_profile(self, name: str) -> None:
        await self._require_gateway().save_profile(name)


__all__ = ["BrowserSession"]
