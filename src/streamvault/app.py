"""Textual front-end for browsing the channel catalog."""
from __future__ import annotations

from typing import Optional

try:
    from textual import on
    from textual.app import App, ComposeResult
    from textual.binding import Binding
    from textual.css.query import NoMatches
    from textual.reactive import reactive
    from textual.widgets import Footer, Header, Input, Label, ListItem, ListView, Static
except ModuleNotFoundError as exc:  # pragma: no cover - dependency guard
    raise ModuleNotFoundError(
        "The 'textual' package is required to run streamvault. "
        "Install dependencies with 'pip install -e .[dev]' or 'pip install streamvault'."
    ) from exc

from rich.markup import escape

from .backend import BackendError
from .filters import ALL, AllChannels, FavouritesOnly, PlaylistSelection
from .logging_utils import get_logger, get_recent_messages
from .playlist import ChannelRecord
from .session import BrowserSession

log = get_logger(__name__)


def _cycle(options: list[str], current: str) -> str:
    """Return the value after *current* in ``["all", *options]``."""

    choices = [ALL, *options]
    try:
        index = choices.index(current)
    except ValueError:
        return ALL
    return choices[(index + 1) % len(choices)]


class ChannelListItem(ListItem):
    """Render a single catalog entry."""

    def __init__(self, channel: ChannelRecord, *, favourite: bool) -> None:
        self.channel = channel
        self.favourite = favourite
        super().__init__(Label(self._label()))

    def _label(self) -> str:
        marker = "★ " if self.favourite else "  "
        parts = (self.channel.language, self.channel.country)
        details = " · ".join(part for part in parts if part)
        label = f"{marker}{escape(self.channel.name)}"
        if details:
            label = f"{label} [dim]({escape(details)})[/dim]"
        return label


class StatusBar(Static):
    status = reactive("Ready")

    def watch_status(self, status: str) -> None:
        self.update(status)


class StreamVaultApp(App[None]):
    """Browse, filter and favourite live-TV channels."""

    CSS = """
    #search {
        dock: top;
    }
    #status {
        dock: bottom;
        height: 1;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("slash", "focus_search", "Search"),
        Binding("a", "show_all", "All"),
        Binding("v", "show_favourites", "Favourites"),
        Binding("p", "next_playlist", "Playlist"),
        Binding("l", "next_language", "Language"),
        Binding("c", "next_country", "Country"),
        Binding("f", "toggle_favourite", "Favourite"),
        Binding("r", "reload", "Reload"),
        Binding("g", "show_log", "Last log"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, session: BrowserSession, *, autostart: bool = True) -> None:
        super().__init__()
        self.session = session
        self._autostart = autostart

    def compose(self) -> ComposeResult:
        yield Header()
        yield Input(placeholder="Search channels…", id="search")
        yield ListView(id="channel-list")
        yield StatusBar(id="status")
        yield Footer()

    def on_mount(self) -> None:
        self.title = "StreamVault"
        self.query_one("#channel-list", ListView).focus()
        self.refresh_channels()
        if self._autostart:
            self.run_worker(self._start(), group="load")

    async def _start(self) -> None:
        self._set_status("Loading channels…")
        await self.session.start()
        self.refresh_channels()

    async def _reload(self) -> None:
        self._set_status("Loading channels…")
        if self.session.backend_catalog:
            await self.session.refresh_backend_catalog()
        else:
            await self.session.load_source(self.session.source_url)
        self.refresh_channels()

    # -- rendering -----------------------------------------------------------

    def _set_status(self, message: str) -> None:
        log.debug("Status: %s", message)
        try:
            self.query_one(StatusBar).status = message
        except NoMatches:  # pragma: no cover - widget not mounted yet
            pass

    def _status_summary(self, shown: int) -> str:
        session = self.session
        if session.error:
            return session.error
        mode = session.filters.mode
        if isinstance(mode, FavouritesOnly):
            mode_label = "Favourites"
        elif isinstance(mode, PlaylistSelection):
            mode_label = f"Playlist {mode.playlist_id}"
        else:
            mode_label = "All"
        facets = f"language={session.filters.language} country={session.filters.country}"
        return f"{mode_label}: {shown} of {session.total_count()} channel(s) · {facets}"

    def refresh_channels(self) -> None:
        """Re-run the filters and redraw the channel list."""

        visible = self.session.visible_channels()
        list_view = self.query_one("#channel-list", ListView)
        list_view.clear()
        if not visible:
            if self.session.loading:
                message = "Loading channels…"
            else:
                message = self.session.empty_message()
            list_view.append(ListItem(Label(message)))
        favourites = self.session.favourite_ids
        for channel in visible:
            list_view.append(ChannelListItem(channel, favourite=channel.id in favourites))
        self._set_status(self._status_summary(len(visible)))

    def _highlighted_channel(self) -> Optional[ChannelRecord]:
        list_view = self.query_one("#channel-list", ListView)
        item = list_view.highlighted_child
        if isinstance(item, ChannelListItem):
            return item.channel
        return None

    # -- events --------------------------------------------------------------

    @on(Input.Changed, "#search")
    def _on_search_changed(self, event: Input.Changed) -> None:
        self.session.set_search(event.value)
        self.refresh_channels()

    @on(ListView.Selected, "#channel-list")
    def _on_channel_selected(self, event: ListView.Selected) -> None:
        item = event.item
        if not isinstance(item, ChannelListItem):
            return
        selected = self.session.select_channel(item.channel.id)
        if selected is None:
            self._set_status("Selection cleared")
        else:
            self._set_status(f"{selected.name}: {selected.stream_url}")

    # -- actions -------------------------------------------------------------

    def action_focus_search(self) -> None:
        self.query_one("#search", Input).focus()

    def action_show_all(self) -> None:
        self.session.set_mode(AllChannels())
        self.refresh_channels()

    def action_show_favourites(self) -> None:
        self.session.set_mode(FavouritesOnly())
        self.refresh_channels()

    def action_next_playlist(self) -> None:
        playlists = self.session.playlists
        if not playlists:
            self._set_status("No playlists yet.")
            return
        ids = [playlist.id for playlist in playlists]
        mode = self.session.filters.mode
        if isinstance(mode, PlaylistSelection) and mode.playlist_id in ids:
            position = ids.index(mode.playlist_id) + 1
            if position >= len(ids):
                self.session.set_mode(AllChannels())
                self.refresh_channels()
                return
        else:
            position = 0
        self.session.set_mode(PlaylistSelection(ids[position]))
        self.refresh_channels()

    def action_next_language(self) -> None:
        filters = self.session.filters
        self.session.set_language(_cycle(self.session.catalog.languages(), filters.language))
        self.refresh_channels()

    def action_next_country(self) -> None:
        filters = self.session.filters
        self.session.set_country(_cycle(self.session.catalog.countries(), filters.country))
        self.refresh_channels()

    async def action_toggle_favourite(self) -> None:
        channel = self._highlighted_channel()
        if channel is None:
            return
        try:
            await self.session.toggle_favourite(channel.id)
        except (BackendError, ValueError) as exc:
            log.error("Failed to toggle favourite for %s: %s", channel.id, exc)
            self._set_status(str(exc))
            return
        list_view = self.query_one("#channel-list", ListView)
        index = list_view.index
        self.refresh_channels()
        if index is not None:
            list_view.index = index

    def action_reload(self) -> None:
        self.run_worker(self._reload(), group="load")

    def action_show_log(self) -> None:
        messages = get_recent_messages()
        self._set_status(messages[-1] if messages else "No log messages yet.")


__all__ = ["ChannelListItem", "StatusBar", "StreamVaultApp"]
