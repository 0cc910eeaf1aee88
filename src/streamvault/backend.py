"""Boundary to the structured channel/favourite/playlist backend."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence

from .logging_utils import get_logger

log = get_logger(__name__)


class BackendError(RuntimeError):
    """Raised when a backend operation fails."""


class UnauthenticatedError(BackendError):
    """Raised by the backend when an identity-scoped call has no identity."""


class UserRole(enum.Enum):
    ADMIN = "admin"
    USER = "user"
    GUEST = "guest"


@dataclass(slots=True, frozen=True)
class BackendChannel:
    """A channel as stored by the backend, keyed by a 64-bit integer."""

    id: int
    name: str
    stream_url: str
    language: str = ""
    country: str = ""
    thumbnail_url: str = ""


@dataclass(slots=True, frozen=True)
class PlaylistEntry:
    """A backend-owned playlist; membership is an ordered tuple of channel ids."""

    id: int
    owner: str
    name: str
    channel_ids: tuple[int, ...] = field(default_factory=tuple)


@dataclass(slots=True, frozen=True)
class UserProfile:
    name: str


class Backend(Protocol):
    """Operations consumed from the backend service."""

    async def get_channels(self) -> Sequence[BackendChannel]: ...

    async def get_favourites(self) -> Sequence[BackendChannel]: ...

    async def toggle_favourite(self, channel_id: int) -> bool: ...

    async def get_my_playlists(self) -> Sequence[PlaylistEntry]: ...

    async def create_playlist(self, name: str) -> int: ...

    async def delete_playlist(self, playlist_id: int) -> None: ...

    async def add_channel_to_playlist(self, playlist_id: int, channel_id: int) -> None: ...

    async def remove_channel_from_playlist(
        self, playlist_id: int, channel_id: int
    ) -> None: ...

    async def get_caller_user_profile(self) -> Optional[UserProfile]: ...

    async def save_caller_user_profile(self, profile: UserProfile) -> None: ...

    async def get_caller_user_role(self) -> UserRole: ...

    async def is_caller_admin(self) -> bool: ...


class BackendGateway:
    """Wrap a :class:`Backend` with the local error policy.

    Reads that need an identity return empty results when the backend
    rejects the caller as unauthenticated. Writes propagate errors.
    """

    def __init__(self, backend: Optional[Backend], *, authenticated: bool = False) -> None:
        self._backend = backend
        self.authenticated = authenticated

    @property
    def available(self) -> bool:
        return self._backend is not None

    def _require(self) -> Backend:
        if self._backend is None:
            raise BackendError("Backend not available")
        return self._backend

    async def list_channels(self) -> List[BackendChannel]:
        if self._backend is None:
            return []
        return list(await self._backend.get_channels())

    async def list_favourites(self) -> List[BackendChannel]:
        if self._backend is None:
            return []
        try:
            return list(await self._backend.get_favourites())
        except UnauthenticatedError:
            log.debug("Favourites unavailable for anonymous caller")
            return []

    async def toggle_favourite(self, channel_id: int) -> bool:
        return await self._require().toggle_favourite(channel_id)

    async def list_playlists(self) -> List[PlaylistEntry]:
        if self._backend is None:
            return []
        try:
            return list(await self._backend.get_my_playlists())
        except UnauthenticatedError:
            log.debug("Playlists unavailable for anonymous caller")
            return []

    async def create_playlist(self, name: str) -> int:
        trimmed = name.strip()
        if not trimmed:
            raise ValueError("Playlist name is required.")
        playlist_id = await self._require().create_playlist(trimmed)
        log.info("Created playlist %s (%d)", trimmed, playlist_id)
        return playlist_id

    async def delete_playlist(self, playlist_id: int) -> None:
        await self._require().delete_playlist(playlist_id)
        log.info("Deleted playlist %d", playlist_id)

    async def add_channel_to_playlist(self, playlist_id: int, channel_id: int) -> None:
        await self._require().add_channel_to_playlist(playlist_id, channel_id)

    async def remove_channel_from_playlist(self, playlist_id: int, channel_id: int) -> None:
        await self._require().remove_channel_from_playlist(playlist_id, channel_id)

    async def get_profile(self) -> Optional[UserProfile]:
        if self._backend is None:
            return None
        try:
            return await self._backend.get_caller_user_profile()
        except UnauthenticatedError:
            return None

    async def save_profile(self, name: str) -> None:
        trimmed = name.strip()
        if not trimmed:
            raise ValueError("Display name is required.")
        await self._require().save_caller_user_profile(UserProfile(name=trimmed))

    async def get_role(self) -> UserRole:
        if self._backend is None:
            return UserRole.GUEST
        try:
            return await self._backend.get_caller_user_role()
        except UnauthenticatedError:
            return UserRole.GUEST

    async def is_admin(self) -> bool:
        if self._backend is None:
            return False
        try:
            return await self._backend.is_caller_admin()
        except UnauthenticatedError:
            return False


__all__ = [
    "Backend",
    "BackendChannel",
    "BackendError",
    "BackendGateway",
    "PlaylistEntry",
    "UnauthenticatedError",
    "UserProfile",
    "UserRole",
]
