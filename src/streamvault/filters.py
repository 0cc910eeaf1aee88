"""Derive the visible channel list from the catalog and the active filters."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import AbstractSet, Iterable, List, Union

from .logging_utils import get_logger
from .playlist import ChannelRecord

log = get_logger(__name__)

ALL = "all"


@dataclass(slots=True, frozen=True)
class AllChannels:
    """Show every catalog entry."""


@dataclass(slots=True, frozen=True)
class FavouritesOnly:
    """Show favourited entries only."""


@dataclass(slots=True, frozen=True)
class PlaylistSelection:
    """Show the members of one backend playlist."""

    playlist_id: int


FilterMode = Union[AllChannels, FavouritesOnly, PlaylistSelection]


@dataclass(slots=True, frozen=True)
class FilterState:
    """The user's current mode, facets and search text."""

    mode: FilterMode = AllChannels()
    language: str = ALL
    country: str = ALL
    search: str = ""

    def with_mode(self, mode: FilterMode) -> "FilterState":
        """Switch to *mode*; any mode but :class:`AllChannels` clears the facets."""

        if isinstance(mode, AllChannels):
            return replace(self, mode=mode)
        if isinstance(mode, (FavouritesOnly, PlaylistSelection)):
            return replace(self, mode=mode, language=ALL, country=ALL)
        raise TypeError(f"Unknown filter mode: {mode!r}")


def _mode_stage(
    channels: Iterable[ChannelRecord],
    mode: FilterMode,
    favourites: AbstractSet[str],
    playlist_members: AbstractSet[str],
) -> List[ChannelRecord]:
    if isinstance(mode, AllChannels):
        return list(channels)
    if isinstance(mode, FavouritesOnly):
        return [channel for channel in channels if channel.id in favourites]
    if isinstance(mode, PlaylistSelection):
        return [channel for channel in channels if channel.id in playlist_members]
    raise TypeError(f"Unknown filter mode: {mode!r}")


def filter_channels(
    catalog: Iterable[ChannelRecord],
    mode: FilterMode,
    language: str,
    country: str,
    search: str,
    favourites: AbstractSet[str],
    playlist_members: AbstractSet[str],
) -> List[ChannelRecord]:
    """Return the catalog entries visible under the given filters, in order.

    ``playlist_members`` must already be resolved for the playlist selected
    by *mode*; it is ignored for the other modes.
    """

    result = _mode_stage(catalog, mode, favourites, playlist_members)
    if language != ALL:
        result = [channel for channel in result if channel.language == language]
    if country != ALL:
        result = [channel for channel in result if channel.country == country]
    query = search.strip().lower()
    if query:
        result = [channel for channel in result if query in channel.name.lower()]
    log.debug(
        "Filter mode=%s language=%s country=%s query='%s' matched %d channel(s)",
        mode,
        language,
        country,
        query,
        len(result),
    )
    return result


def apply_filter_state(
    catalog: Iterable[ChannelRecord],
    state: FilterState,
    favourites: AbstractSet[str],
    playlist_members: AbstractSet[str],
) -> List[ChannelRecord]:
    return filter_channels(
        catalog,
        state.mode,
        state.language,
        state.country,
        state.search,
        favourites,
        playlist_members,
    )


__all__ = [
    "ALL",
    "AllChannels",
    "FavouritesOnly",
    "FilterMode",
    "FilterState",
    "PlaylistSelection",
    "apply_filter_state",
    "filter_channels",
]
