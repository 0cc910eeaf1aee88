"""Assemble the channel catalog from its sources."""
from __future__ import annotations

from typing import Dict, Iterable, Iterator, Optional, Sequence

from .backend import BackendChannel
from .logging_utils import get_logger
from .playlist import ChannelOrigin, ChannelRecord

log = get_logger(__name__)


class ChannelCatalog:
    """Immutable, ordered snapshot of the channels available for display."""

    __slots__ = ("_channels", "_by_id")

    def __init__(self, channels: Iterable[ChannelRecord] = ()) -> None:
        self._channels: tuple[ChannelRecord, ...] = tuple(channels)
        self._by_id: Dict[str, ChannelRecord] = {}
        for channel in self._channels:
            if channel.id in self._by_id:
                raise ValueError(f"Duplicate channel id in catalog: {channel.id}")
            self._by_id[channel.id] = channel

    def __len__(self) -> int:
        return len(self._channels)

    def __iter__(self) -> Iterator[ChannelRecord]:
        return iter(self._channels)

    def __contains__(self, channel_id: object) -> bool:
        return channel_id in self._by_id

    @property
    def channels(self) -> tuple[ChannelRecord, ...]:
        return self._channels

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(self._by_id)

    def get(self, channel_id: str) -> Optional[ChannelRecord]:
        return self._by_id.get(channel_id)

    def languages(self) -> list[str]:
        """Return the sorted distinct non-empty languages."""

        return sorted({channel.language for channel in self._channels if channel.language})

    def countries(self) -> list[str]:
        """Return the sorted distinct non-empty countries."""

        return sorted({channel.country for channel in self._channels if channel.country})

    def revalidate(self, channel_ids: Iterable[str]) -> frozenset[str]:
        """Return the subset of *channel_ids* still present in this snapshot."""

        return frozenset(channel_id for channel_id in channel_ids if channel_id in self._by_id)


def build_catalog(
    manual: Sequence[ChannelRecord], parsed: Sequence[ChannelRecord]
) -> ChannelCatalog:
    """Concatenate *manual* (newest first) ahead of *parsed* channels.

    Sources are not de-duplicated against each other.
    """

    catalog = ChannelCatalog([*manual, *parsed])
    log.debug(
        "Built catalog with %d manual and %d parsed channel(s)", len(manual), len(parsed)
    )
    return catalog


def backend_channel_to_record(channel: BackendChannel) -> ChannelRecord:
    return ChannelRecord(
        id=str(channel.id),
        name=channel.name,
        stream_url=channel.stream_url,
        language=channel.language,
        country=channel.country,
        thumbnail_url=channel.thumbnail_url,
        origin=ChannelOrigin.BACKEND_CATALOG,
    )


def build_backend_catalog(channels: Sequence[BackendChannel]) -> ChannelCatalog:
    """Return a catalog made solely of backend channels.

    Backend entries with a blank name or stream URL are skipped.
    """

    records: list[ChannelRecord] = []
    for channel in channels:
        if not channel.name.strip() or not channel.stream_url.strip():
            log.warning("Skipping backend channel %d with missing fields", channel.id)
            continue
        records.append(backend_channel_to_record(channel))
    return ChannelCatalog(records)


__all__ = [
    "ChannelCatalog",
    "backend_channel_to_record",
    "build_backend_catalog",
    "build_catalog",
]
