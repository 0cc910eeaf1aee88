"""Retrieve playlist text from remote sources."""
from __future__ import annotations

import asyncio
import http.client
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional
from urllib import error, request
from urllib.parse import quote

from .logging_utils import get_logger
from .playlist import HEADER_MARKER, ChannelRecord, PlaylistError, parse_playlist

log = get_logger(__name__)

DEFAULT_RELAY_URL = "https://corsproxy.io/?url="


class PlaylistFetchError(PlaylistError):
    """Raised when neither the direct nor the relay fetch produced a playlist."""


def is_valid_playlist_response(status: int, body: str) -> bool:
    """Return True if a response may be handed to the parser."""

    return 200 <= status < 300 and HEADER_MARKER in body


def build_relay_url(relay_url: str, target_url: str) -> str:
    """Return *relay_url* wrapping the percent-encoded *target_url*."""

    return f"{relay_url}{quote(target_url, safe='')}"


def _fetch_text(
    url: str, timeout: Optional[float], *, user_agent: Optional[str] = None
) -> tuple[int, str]:
    log.debug("Fetching playlist text from %s (timeout=%s)", url, timeout)
    req = request.Request(url, headers={"Cache-Control": "no-store"})
    if user_agent:
        req.add_header("User-Agent", user_agent)
    kwargs = {} if timeout is None else {"timeout": timeout}
    try:
        with request.urlopen(req, **kwargs) as response:  # type: ignore[arg-type]
            status = getattr(response, "status", 200)
            payload = response.read()
    except error.HTTPError as exc:
        return exc.code, ""
    return status, payload.decode("utf8", errors="replace")


async def _attempt(
    url: str, timeout: Optional[float], user_agent: Optional[str]
) -> tuple[int, str]:
    return await asyncio.to_thread(_fetch_text, url, timeout, user_agent=user_agent)


async def fetch_playlist_text(
    url: str,
    *,
    relay_url: str = DEFAULT_RELAY_URL,
    timeout: Optional[float] = None,
    user_agent: Optional[str] = None,
) -> str:
    """Fetch playlist text from *url*, falling back once to *relay_url*."""

    log.info("Requesting playlist from %s", url)
    try:
        status, body = await _attempt(url, timeout, user_agent)
    except (OSError, ValueError, http.client.HTTPException) as exc:
        log.warning("Direct fetch of %s failed: %s", url, exc)
    else:
        if is_valid_playlist_response(status, body):
            return body
        log.warning(
            "Direct fetch of %s returned status %s without a usable playlist", url, status
        )

    relayed = build_relay_url(relay_url, url)
    log.info("Retrying playlist fetch through relay %s", relayed)
    try:
        status, body = await _attempt(relayed, timeout, user_agent)
    except (OSError, ValueError, http.client.HTTPException) as exc:
        log.error("Relay fetch of %s failed: %s", url, exc)
        raise PlaylistFetchError(f"Failed to fetch M3U playlist: {exc}") from exc
    if not 200 <= status < 300:
        log.error("Relay fetch of %s returned status %s", url, status)
        raise PlaylistFetchError(f"Failed to fetch M3U playlist: HTTP {status}")
    if not is_valid_playlist_response(status, body):
        log.error("Relay response for %s is missing the %s header", url, HEADER_MARKER)
        raise PlaylistFetchError(f"Invalid M3U playlist: missing {HEADER_MARKER} header")
    return body


@dataclass(slots=True)
class LoadResult:
    """Channels parsed from the most recent load request."""

    url: str
    generation: int
    channels: List[ChannelRecord]


class SourceLoader:
    """Fetch and parse playlist sources so the newest request always wins.

    Every call to :meth:`load` takes a new generation number. A response
    whose generation is no longer the latest is discarded, whether it
    succeeded or failed.
    """

    def __init__(self, fetch: Callable[[str], Awaitable[str]]) -> None:
        self._fetch = fetch
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def load(self, url: str) -> Optional[LoadResult]:
        """Return parsed channels for *url*, or ``None`` when superseded."""

        self._generation += 1
        generation = self._generation
        log.debug("Starting playlist load #%d for %s", generation, url)
        try:
            text = await self._fetch(url)
        except Exception as exc:
            if not self.is_current(generation):
                log.info("Ignoring failure of superseded load #%d for %s", generation, url)
                return None
            if isinstance(exc, PlaylistFetchError):
                raise
            raise PlaylistFetchError(f"Failed to fetch M3U playlist: {exc!r}") from exc
        if not self.is_current(generation):
            log.info("Discarding superseded load #%d for %s", generation, url)
            return None
        return LoadResult(url=url, generation=generation, channels=parse_playlist(text))


__all__ = [
    "DEFAULT_RELAY_URL",
    "LoadResult",
    "PlaylistFetchError",
    "SourceLoader",
    "build_relay_url",
    "fetch_playlist_text",
    "is_valid_playlist_response",
]
