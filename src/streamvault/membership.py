"""Map backend playlist membership onto catalog channel ids.

Backend channel ids are plain integers. Catalog ids are opaque strings:
backend channels use the bare decimal form (``"42"``) while parsed playlist
channels carry the ``m3u-`` prefix (``"m3u-42"``). Membership is tested
against both spellings.
"""
from __future__ import annotations

from typing import Iterable, Optional

from .backend import PlaylistEntry
from .logging_utils import get_logger
from .playlist import PARSED_ID_PREFIX, ChannelRecord

log = get_logger(__name__)


def backend_id_forms(channel_id: int) -> tuple[str, str]:
    """Return the bare and prefixed catalog spellings of *channel_id*."""

    bare = str(channel_id)
    return bare, f"{PARSED_ID_PREFIX}{bare}"


def catalog_id_to_backend(channel_id: str) -> Optional[int]:
    """Return the integer behind a bare or prefixed catalog id, if any."""

    text = channel_id.strip()
    if text.startswith(PARSED_ID_PREFIX):
        text = text[len(PARSED_ID_PREFIX) :]
    if not (text.isascii() and text.isdigit()):
        return None
    return int(text)


def find_playlist(
    playlist_id: int, playlists: Iterable[PlaylistEntry]
) -> Optional[PlaylistEntry]:
    for playlist in playlists:
        if playlist.id == playlist_id:
            return playlist
    return None


def resolve_playlist_members(
    playlist_id: int,
    playlists: Iterable[PlaylistEntry],
    catalog: Iterable[ChannelRecord],
) -> frozenset[str]:
    """Return catalog ids belonging to playlist *playlist_id*.

    An unknown playlist resolves to an empty set.
    """

    playlist = find_playlist(playlist_id, playlists)
    if playlist is None:
        log.debug("Playlist %s not found; no members resolved", playlist_id)
        return frozenset()
    wanted: set[str] = set()
    for member in playlist.channel_ids:
        wanted.update(backend_id_forms(member))
    members = frozenset(channel.id for channel in catalog if channel.id in wanted)
    log.debug(
        "Resolved %d of %d member(s) for playlist %s",
        len(members),
        len(playlist.channel_ids),
        playlist_id,
    )
    return members


__all__ = [
    "backend_id_forms",
    "catalog_id_to_backend",
    "find_playlist",
    "resolve_playlist_members",
]
