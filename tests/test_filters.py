import pytest

from streamvault.filters import (
    ALL,
    AllChannels,
    FavouritesOnly,
    FilterState,
    PlaylistSelection,
    apply_filter_state,
    filter_channels,
)
from streamvault.playlist import ChannelRecord


def _channel(channel_id: str, name: str, language: str = "", country: str = "") -> ChannelRecord:
    return ChannelRecord(
        id=channel_id,
        name=name,
        stream_url=f"http://stream/{channel_id}",
        language=language,
        country=country,
    )


CATALOG = [
    _channel("m3u-0", "BBC News", "English", "GB"),
    _channel("m3u-1", "CNN International", "English", "US"),
    _channel("m3u-2", "France 24", "French", "FR"),
    _channel("m3u-3", "BBC Two", "english", "GB"),
]


def _names(channels):
    return [channel.name for channel in channels]


def test_all_mode_without_facets_returns_catalog_in_order() -> None:
    result = filter_channels(CATALOG, AllChannels(), ALL, ALL, "", frozenset(), frozenset())
    assert result == CATALOG
    assert result is not CATALOG


@pytest.mark.parametrize("language", [ALL, "English"])
@pytest.mark.parametrize("search", ["", "bbc"])
def test_favourites_mode_with_no_favourites_is_empty(language: str, search: str) -> None:
    assert filter_channels(CATALOG, FavouritesOnly(), language, ALL, search, set(), set()) == []


def test_playlist_mode_without_members_is_empty() -> None:
    favourites = {"m3u-0"}
    assert filter_channels(CATALOG, PlaylistSelection(9), ALL, ALL, "", favourites, set()) == []


def test_favourites_mode_keeps_catalog_order() -> None:
    result = filter_channels(
        CATALOG, FavouritesOnly(), ALL, ALL, "", {"m3u-3", "m3u-0", "unknown"}, set()
    )
    assert _names(result) == ["BBC News", "BBC Two"]


def test_playlist_mode_uses_resolved_members() -> None:
    result = filter_channels(
        CATALOG, PlaylistSelection(1), ALL, ALL, "", set(), {"m3u-2", "m3u-1"}
    )
    assert _names(result) == ["CNN International", "France 24"]


def test_language_facet_is_exact_and_case_sensitive() -> None:
    result = filter_channels(CATALOG, AllChannels(), "English", ALL, "", set(), set())
    assert _names(result) == ["BBC News", "CNN International"]


def test_country_facet_is_independent_of_language() -> None:
    result = filter_channels(CATALOG, AllChannels(), ALL, "GB", "", set(), set())
    assert _names(result) == ["BBC News", "BBC Two"]
    result = filter_channels(CATALOG, AllChannels(), "English", "GB", "", set(), set())
    assert _names(result) == ["BBC News"]


def test_search_is_trimmed_case_insensitive_substring() -> None:
    result = filter_channels(CATALOG, AllChannels(), ALL, ALL, "  bBc ", set(), set())
    assert _names(result) == ["BBC News", "BBC Two"]
    result = filter_channels(CATALOG, AllChannels(), ALL, ALL, "   ", set(), set())
    assert result == CATALOG


def test_stages_compose() -> None:
    result = filter_channels(
        CATALOG,
        FavouritesOnly(),
        "English",
        "GB",
        "news",
        {"m3u-0", "m3u-1", "m3u-3"},
        set(),
    )
    assert _names(result) == ["BBC News"]


def test_switching_away_from_all_resets_facets() -> None:
    state = FilterState(language="English", country="GB", search="bbc")

    favourites = state.with_mode(FavouritesOnly())
    assert (favourites.language, favourites.country) == (ALL, ALL)
    assert favourites.search == "bbc"

    playlist = state.with_mode(PlaylistSelection(3))
    assert playlist.mode == PlaylistSelection(3)
    assert (playlist.language, playlist.country) == (ALL, ALL)

    back_to_all = FilterState(mode=FavouritesOnly(), language="French").with_mode(AllChannels())
    assert back_to_all.mode == AllChannels()
    assert back_to_all.language == "French"


def test_unknown_mode_is_rejected() -> None:
    with pytest.raises(TypeError):
        FilterState().with_mode("favourites")  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        filter_channels(CATALOG, "all", ALL, ALL, "", set(), set())  # type: ignore[arg-type]


def test_apply_filter_state() -> None:
    state = FilterState(mode=AllChannels(), country="FR")
    assert _names(apply_filter_state(CATALOG, state, set(), set())) == ["France 24"]
