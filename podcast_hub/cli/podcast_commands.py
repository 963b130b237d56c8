#!/usr/bin/env python3
"""
CLI commands for running and inspecting a PodcastHub installation.

Commands:
    init-db         Create the database tables
    ensure-buckets  Create the storage buckets if they are missing
    list            List podcasts, newest first
    episodes        List the episodes of a podcast
    play            Play an episode in the terminal
    serve           Run the web server
"""

import argparse
import logging
import sys

from podcast_hub.argparse_shared import (
    add_limit_argument,
    add_log_level_argument,
    add_env_file_argument,
    add_volume_argument,
)
from podcast_hub.config import Config
from podcast_hub.db.factory import repository_from_config
from podcast_hub.player import EpisodePlayer, MpvAudioEngine, PlayerError
from podcast_hub.storage import StorageError, create_storage_provider, ensure_buckets
from podcast_hub.utils import format_time

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

PLAYER_HELP = "Commands: p = play/pause, s SECONDS = seek, v VOLUME = volume (0-1), f = favorite, q = quit"


def _open_repository(config: Config, create_tables: bool = False):
    return repository_from_config(config, create_tables=create_tables)


def init_db(args, config: Config):
    """Create every table defined by the models."""
    repository = _open_repository(config, create_tables=True)
    try:
        print("Database tables are ready")
    finally:
        repository.close()


def ensure_buckets_command(args, config: Config):
    """Create the cover and audio buckets on the configured storage backend."""
    storage = create_storage_provider(config)
    try:
        created = ensure_buckets(storage)
    except StorageError as e:
        logger.error(f"Could not create storage buckets: {e}")
        sys.exit(1)

    if created:
        print(f"Created buckets: {', '.join(created)}")
    else:
        print("All buckets already exist")


def list_podcasts(args, config: Config):
    """Print the discovery list as a table of ID, title, author and episode count."""
    repository = _open_repository(config)

    try:
        podcasts = repository.list_podcasts(limit=args.limit)

        if not podcasts:
            print("No podcasts found")
            return

        print(f"\n{'ID':<36}  {'Title':<40}  {'Author':<20}  {'Episodes'}")
        print("-" * 110)

        for podcast in podcasts:
            episodes = repository.list_episodes(podcast.id)
            author = podcast.author.username if podcast.author else "Unknown"
            print(
                f"{podcast.id:<36}  "
                f"{podcast.title[:40]:<40}  "
                f"{author[:20]:<20}  "
                f"{len(episodes)}"
            )

    finally:
        repository.close()


def list_episodes(args, config: Config):
    """Print a podcast's episodes, newest publication first."""
    repository = _open_repository(config)

    try:
        podcast = repository.get_podcast(args.podcast_id)
        if not podcast:
            print(f"Podcast not found: {args.podcast_id}")
            sys.exit(1)

        episodes = repository.list_episodes(podcast.id)

        print(f"\n{podcast.title}")
        print("=" * 60)
        if not episodes:
            print("No episodes yet")
            return

        for episode in episodes:
            published = episode.published_at.strftime("%Y-%m-%d") if episode.published_at else "-"
            print(
                f"{episode.id}  {published}  "
                f"{format_time(episode.duration):>8}  {episode.title}"
            )

    finally:
        repository.close()


def _print_state(state) -> None:
    status = "Playing" if state.is_playing else "Paused"
    favorite = " *" if state.is_favorite else ""
    print(
        f"[{status}] {format_time(state.current_time)} / {format_time(state.duration)}"
        f"  vol {round(state.volume * 100)}%{favorite}"
    )


def _run_player_command(player: EpisodePlayer, line: str) -> bool:
    """Apply one typed command. Returns False when the listener quits."""
    parts = line.strip().split()
    if not parts:
        return True

    command, values = parts[0].lower(), parts[1:]

    if command == "q":
        return False
    if command == "p":
        player.toggle_play_pause()
    elif command == "f":
        player.toggle_favorite()
    elif command in ("s", "v"):
        if len(values) != 1:
            print(PLAYER_HELP)
            return True
        try:
            value = float(values[0])
        except ValueError:
            print(f"Not a number: {values[0]}")
            return True
        if command == "s":
            player.seek(value)
        else:
            player.set_volume(value)
    else:
        print(PLAYER_HELP)
        return True

    _print_state(player.state)
    return True


def play_episode(args, config: Config):
    """Load an episode and drive the player from typed commands."""
    repository = _open_repository(config)
    volume = args.volume if args.volume is not None else config.PLAYER_DEFAULT_VOLUME
    player = EpisodePlayer(
        repository,
        engine_factory=MpvAudioEngine,
        user_id=args.user_id,
        volume=volume,
        poll_interval=config.PLAYER_POLL_INTERVAL,
    )

    try:
        try:
            player.load(args.episode_id)
        except PlayerError as e:
            print(str(e))
            sys.exit(1)

        podcast_title = player.podcast.title if player.podcast else ""
        print(f"\n{player.episode.title}")
        if podcast_title:
            print(podcast_title)
        print(PLAYER_HELP)
        _print_state(player.state)

        while True:
            try:
                line = input("> ")
            except EOFError:
                break
            try:
                if not _run_player_command(player, line):
                    break
            except PlayerError as e:
                print(str(e))

    except KeyboardInterrupt:
        print()
    finally:
        player.close()
        repository.close()


def serve(args, config: Config):
    """Run the web application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "podcast_hub.web.app:create_app",
        factory=True,
        host=args.host,
        port=args.port or config.WEB_PORT,
        reload=args.reload,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="PodcastHub management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    add_env_file_argument(parser)
    add_log_level_argument(parser)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Create the database tables")

    subparsers.add_parser("ensure-buckets", help="Create the storage buckets")

    # list command
    list_parser = subparsers.add_parser(
        "list",
        help="List podcasts",
    )
    add_limit_argument(list_parser, "Maximum number of podcasts to show")

    # episodes command
    episodes_parser = subparsers.add_parser(
        "episodes",
        help="List the episodes of a podcast",
    )
    episodes_parser.add_argument("podcast_id", help="Podcast ID")

    # play command
    play_parser = subparsers.add_parser(
        "play",
        help="Play an episode in the terminal",
    )
    play_parser.add_argument("episode_id", help="Episode ID")
    play_parser.add_argument(
        "--user-id",
        help="Profile ID used for the favorite toggle",
        default=None,
    )
    add_volume_argument(play_parser)

    # serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the web server",
    )
    serve_parser.add_argument("--host", default="0.0.0.0", help="Interface to bind")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (defaults to PORT)")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    return parser


def main():
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.getLogger().setLevel(getattr(logging, args.log_level.upper(), logging.INFO))

    config = Config(env_file=args.env_file)

    commands = {
        "init-db": init_db,
        "ensure-buckets": ensure_buckets_command,
        "list": list_podcasts,
        "episodes": list_episodes,
        "play": play_episode,
        "serve": serve,
    }

    command_func = commands.get(args.command)
    if command_func:
        command_func(args, config)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
