import argparse


def get_base_parser(description: str = "PodcastHub command line tools") -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=description,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    add_env_file_argument(parser)
    add_log_level_argument(parser)
    return parser


def add_env_file_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-e", "--env-file", help="Path to a custom .env file", default=None)


def add_log_level_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-l", "--log-level", help="Set log level (DEBUG, INFO, WARNING, ERROR)", default="INFO")


def add_limit_argument(parser: argparse.ArgumentParser, help_text: str) -> None:
    parser.add_argument("--limit", type=int, help=help_text, default=None)


def add_volume_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--volume",
        type=float,
        help="Initial volume between 0 and 1 (defaults to PLAYER_DEFAULT_VOLUME)",
        default=None,
    )
