from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Callable, Optional, Sequence

import pytest

from streamvault.backend import (
    BackendChannel,
    PlaylistEntry,
    UnauthenticatedError,
    UserProfile,
    UserRole,
)
from streamvault.config import AppConfig
from streamvault.favourites import FavouritesStore
from streamvault.session import BrowserSession
from streamvault.storage import KeyValueStore


SAMPLE_PLAYLIST = """#EXTM3U
#EXTINF:-1 tvg-logo="http://x/a.png" tvg-country="GB",BBC News
http://stream/bbc.m3u8
#EXTINF:-1 group-title="News",CNN
http://stream/cnn.m3u8
"""


class InMemoryBackend:
    """Backend double keeping channels, favourites and playlists in memory."""

    def __init__(
        self,
        channels: Sequence[BackendChannel] = (),
        *,
        authenticated: bool = True,
        owner: str = "principal-1",
    ) -> None:
        self.channels = list(channels)
        self.authenticated = authenticated
        self.owner = owner
        self.favourites: list[int] = []
        self.playlists: dict[int, PlaylistEntry] = {}
        self.profile: Optional[UserProfile] = None
        self._next_playlist_id = 1

    def _check(self) -> None:
        if not self.authenticated:
            raise UnauthenticatedError("Anonymous caller")

    async def get_channels(self) -> list[BackendChannel]:
        return list(self.channels)

    async def get_favourites(self) -> list[BackendChannel]:
        self._check()
        return [channel for channel in self.channels if channel.id in self.favourites]

    async def toggle_favourite(self, channel_id: int) -> bool:
        self._check()
        if channel_id in self.favourites:
            self.favourites.remove(channel_id)
            return False
        self.favourites.append(channel_id)
        return True

    async def get_my_playlists(self) -> list[PlaylistEntry]:
        self._check()
        return list(self.playlists.values())

    async def create_playlist(self, name: str) -> int:
        self._check()
        playlist_id = self._next_playlist_id
        self._next_playlist_id += 1
        self.playlists[playlist_id] = PlaylistEntry(id=playlist_id, owner=self.owner, name=name)
        return playlist_id

    async def delete_playlist(self, playlist_id: int) -> None:
        self._check()
        self.playlists.pop(playlist_id, None)

    async def add_channel_to_playlist(self, playlist_id: int, channel_id: int) -> None:
        self._check()
        entry = self.playlists[playlist_id]
        if channel_id not in entry.channel_ids:
            self.playlists[playlist_id] = replace(
                entry, channel_ids=(*entry.channel_ids, channel_id)
            )

    async def remove_channel_from_playlist(self, playlist_id: int, channel_id: int) -> None:
        self._check()
        entry = self.playlists[playlist_id]
        self.playlists[playlist_id] = replace(
            entry, channel_ids=tuple(cid for cid in entry.channel_ids if cid != channel_id)
        )

    async def get_caller_user_profile(self) -> Optional[UserProfile]:
        self._check()
        return self.profile

    async def save_caller_user_profile(self, profile: UserProfile) -> None:
        self._check()
        self.profile = profile

    async def get_caller_user_role(self) -> UserRole:
        self._check()
        return UserRole.USER

    async def is_caller_admin(self) -> bool:
        self._check()
        return False


@pytest.fixture
def storage(tmp_path: Path) -> KeyValueStore:
    return KeyValueStore(tmp_path / "storage.sqlite")


@pytest.fixture
def favourites_store(storage: KeyValueStore) -> FavouritesStore:
    return FavouritesStore(storage)


@pytest.fixture
def make_session(
    favourites_store: FavouritesStore,
) -> Callable[..., BrowserSession]:
    def factory(text: str = SAMPLE_PLAYLIST, **kwargs) -> BrowserSession:
        async def fake_fetch(url: str) -> str:
            return text

        kwargs.setdefault("fetch", fake_fetch)
        return BrowserSession(AppConfig(), favourites_store, **kwargs)

    return factory
