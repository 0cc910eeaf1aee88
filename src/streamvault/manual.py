"""In-memory registry of channels entered by the user."""
from __future__ import annotations

import time
from typing import Callable, List, Optional
from urllib.parse import urlparse

from .logging_utils import get_logger
from .playlist import ChannelOrigin, ChannelRecord

log = get_logger(__name__)


def _is_absolute_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


class ManualChannelRegistry:
    """Hold manually added channels, most recently added first."""

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._channels: List[ChannelRecord] = []
        self._counter = 0
        self._clock = clock

    def __len__(self) -> int:
        return len(self._channels)

    @property
    def channels(self) -> tuple[ChannelRecord, ...]:
        return tuple(self._channels)

    def add(
        self,
        name: str,
        stream_url: str,
        *,
        thumbnail_url: Optional[str] = None,
        language: Optional[str] = None,
        country: Optional[str] = None,
    ) -> ChannelRecord:
        """Validate the input and register a new channel.

        Raises :class:`ValueError` when the name is blank or the stream URL is
        not an absolute URL.
        """

        name = name.strip()
        stream_url = stream_url.strip()
        if not name:
            raise ValueError("Channel name is required.")
        if not stream_url:
            raise ValueError("Stream URL is required.")
        if not _is_absolute_url(stream_url):
            raise ValueError("Please enter a valid URL.")

        channel_id = f"manual-{int(self._clock() * 1000)}-{self._counter}"
        self._counter += 1
        record = ChannelRecord(
            id=channel_id,
            name=name,
            stream_url=stream_url,
            thumbnail_url=(thumbnail_url or "").strip(),
            language=(language or "").strip(),
            country=(country or "").strip(),
            origin=ChannelOrigin.MANUAL,
        )
        self._channels.insert(0, record)
        log.info("Added manual channel %s (%s)", record.name, record.id)
        return record


__all__ = ["ManualChannelRegistry"]
