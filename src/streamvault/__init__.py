"""Live-TV channel browser built around extended M3U playlists."""

__version__ = "0.1.0"
