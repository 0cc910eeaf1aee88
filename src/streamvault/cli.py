"""Command line entry point for StreamVault."""
from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Iterable

from . import __version__
from .app import StreamVaultApp
from .config import CONFIG_PATH, AppConfig, load_config
from .favourites import FavouritesStore
from .filters import ALL, FavouritesOnly
from .logging_utils import configure_logging, get_logger
from .session import BrowserSession
from .storage import KeyValueStore

log = get_logger(__name__)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Browse live-TV channels from M3U playlists")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        default=CONFIG_PATH,
        help="Path to configuration file (default: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override STREAMVAULT_LOG_LEVEL for this invocation",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Write logs to this file instead of the default or STREAMVAULT_LOG_FILE",
    )
    parser.add_argument(
        "--playlist-url",
        default=None,
        help="Load channels from this M3U playlist instead of the configured one",
    )
    parser.add_argument(
        "--relay-url",
        default=None,
        help="Relay endpoint used when the direct playlist fetch fails",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="Print the visible channels and exit instead of starting the UI.",
    )
    parser.add_argument("--language", default=ALL, help="Only list this language")
    parser.add_argument("--country", default=ALL, help="Only list this country")
    parser.add_argument("--search", default="", help="Only list names containing this text")
    parser.add_argument(
        "--favourites",
        action="store_true",
        help="Only list favourite channels",
    )
    return parser.parse_args(argv)


def build_session(config: AppConfig) -> BrowserSession:
    storage = KeyValueStore(config.resolved_storage_path())
    store = FavouritesStore(storage, key=config.favourites_key)
    return BrowserSession(config, store)


async def _print_channels(session: BrowserSession, args: argparse.Namespace) -> int:
    await session.start()
    if session.error:
        print(session.error)
        return 1
    if args.favourites:
        session.set_mode(FavouritesOnly())
    session.set_language(args.language)
    session.set_country(args.country)
    session.set_search(args.search)
    visible = session.visible_channels()
    if not visible:
        print(session.empty_message())
        return 0
    for channel in visible:
        print(f"{channel.name}\t{channel.stream_url}")
    return 0


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(
        level=args.log_level,
        log_file=str(args.log_file) if args.log_file is not None else None,
    )
    log.info("CLI invoked with config=%s", args.config)
    config = load_config(args.config)
    if args.playlist_url:
        config.playlist_url = args.playlist_url
    if args.relay_url:
        config.relay_url = args.relay_url
    session = build_session(config)

    if args.list:
        status = asyncio.run(_print_channels(session, args))
        if status:
            raise SystemExit(status)
        return

    app = StreamVaultApp(session)
    log.info("Launching Textual application")
    try:
        app.run()
    except KeyboardInterrupt:
        log.info("Keyboard interrupt received; exiting application")
        if app.is_running:
            app.exit()
        raise SystemExit(130) from None


if __name__ == "__main__":  # pragma: no cover
    main()
