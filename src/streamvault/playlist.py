"""Utilities for parsing extended M3U playlists into channel records."""
from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import List, Optional

from .logging_utils import get_logger

log = get_logger(__name__)

HEADER_MARKER = "#EXTM3U"
METADATA_MARKER = "#EXTINF:"
PARSED_ID_PREFIX = "m3u-"


class ChannelOrigin(enum.Enum):
    """Where a catalog entry came from."""

    MANUAL = "manual"
    PARSED_PLAYLIST = "parsed-playlist"
    BACKEND_CATALOG = "backend-catalog"


@dataclass(slots=True, frozen=True)
class ChannelRecord:
    """A single channel entry in the catalog."""

    id: str
    name: str
    stream_url: str
    language: str = ""
    country: str = ""
    thumbnail_url: str = ""
    origin: ChannelOrigin = ChannelOrigin.PARSED_PLAYLIST

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("Channel name is required")
        if not self.stream_url.strip():
            raise ValueError("Channel stream URL is required")


class PlaylistError(RuntimeError):
    """Raised when a playlist cannot be obtained or understood."""


def extract_attribute(metadata: str, key: str) -> str:
    """Return the trimmed ``key="value"`` attribute from *metadata* or ``""``."""

    pattern = re.compile(rf'(?<![\w-]){re.escape(key)}="([^"]*)"', re.IGNORECASE)
    match = pattern.search(metadata)
    return match.group(1).strip() if match else ""


def _channel_name(metadata: str) -> str:
    _, comma, name = metadata.rpartition(",")
    if not comma:
        return ""
    return name.strip()


def _build_record(metadata: str, stream_url: str, index: int) -> Optional[ChannelRecord]:
    name = _channel_name(metadata)
    if not name or not stream_url:
        log.debug("Skipping playlist entry without name or URL: %s", metadata)
        return None
    language = extract_attribute(metadata, "tvg-language") or extract_attribute(
        metadata, "group-title"
    )
    return ChannelRecord(
        id=f"{PARSED_ID_PREFIX}{index}",
        name=name,
        stream_url=stream_url,
        language=language,
        country=extract_attribute(metadata, "tvg-country"),
        thumbnail_url=extract_attribute(metadata, "tvg-logo"),
        origin=ChannelOrigin.PARSED_PLAYLIST,
    )


def parse_playlist(text: str, *, start_index: int = 0) -> List[ChannelRecord]:
    """Parse playlist *text* into channel records.

    Entries are numbered ``m3u-<n>`` starting at *start_index*; only emitted
    records consume a number, so the next free index is
    ``start_index + len(result)``. Malformed entries are skipped and never
    abort the parse. The header marker is not checked here.
    """

    channels: List[ChannelRecord] = []
    # Metadata line waiting for its stream URL, if any.
    pending: Optional[str] = None
    next_index = start_index

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith(METADATA_MARKER):
            if pending is not None:
                log.debug("Dropping metadata without stream URL: %s", pending)
            pending = line
            continue
        if pending is None or line.startswith("#"):
            continue
        record = _build_record(pending, line, next_index)
        if record is not None:
            channels.append(record)
            next_index += 1
        pending = None

    if pending is not None:
        log.debug("Playlist ended before a stream URL for: %s", pending)
    log.info("Parsed %d channels from playlist", len(channels))
    return channels


__all__ = [
    "ChannelOrigin",
    "ChannelRecord",
    "HEADER_MARKER",
    "METADATA_MARKER",
    "PARSED_ID_PREFIX",
    "PlaylistError",
    "extract_attribute",
    "parse_playlist",
]
