"""Command-line entry point."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Sequence

from pydantic import ValidationError

from . import __version__
from .config import Settings, get_settings
from .runner import run

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reclaimarr",
        description=(
            "Find Jellyfin media nobody has watched for a while and reclaim the "
            "space through Sonarr and Radarr."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Every option falls back to the environment variable shown in brackets.

Examples:
  %(prog)s --days 180
  %(prog)s --sonarr-url http://sonarr:8989 --sonarr-api-key KEY --execute
            """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    parser.add_argument("--jellyfin-url", help="Jellyfin base URL [JELLYFIN_URL]")
    parser.add_argument("--jellyfin-username", help="Jellyfin username [JELLYFIN_USERNAME]")
    parser.add_argument("--jellyfin-password", help="Jellyfin password [JELLYFIN_PASSWORD]")
    parser.add_argument("--sonarr-url", help="Sonarr base URL [SONARR_URL]")
    parser.add_argument("--sonarr-api-key", help="Sonarr API key [SONARR_API_KEY]")
    parser.add_argument("--radarr-url", help="Radarr base URL [RADARR_URL]")
    parser.add_argument("--radarr-api-key", help="Radarr API key [RADARR_API_KEY]")
    parser.add_argument(
        "--days",
        type=int,
        help="Only consider media added more than this many days ago "
        "(default: 365) [AGE_THRESHOLD_DAYS]",
    )
    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        default=None,
        help="Report what would be deleted without changing anything (default) [DRY_RUN]",
    )
    parser.add_argument(
        "-e",
        "--execute",
        action="store_true",
        help="Delete files and unmonitor items; overrides --dry-run",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (default: INFO) [LOG_LEVEL]",
    )
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    dry_run = False if args.execute else args.dry_run
    return get_settings(
        JELLYFIN_URL=args.jellyfin_url,
        JELLYFIN_USERNAME=args.jellyfin_username,
        JELLYFIN_PASSWORD=args.jellyfin_password,
        SONARR_URL=args.sonarr_url,
        SONARR_API_KEY=args.sonarr_api_key,
        RADARR_URL=args.radarr_url,
        RADARR_API_KEY=args.radarr_api_key,
        AGE_THRESHOLD_DAYS=args.days,
        DRY_RUN=dry_run,
        LOG_LEVEL=args.log_level,
    )


def check_credentials(settings: Settings) -> list[str]:
    """Return a description of every missing credential that blocks a run."""

    problems: list[str] = []
    if not settings.jellyfin_configured:
        problems.append("JELLYFIN_URL, JELLYFIN_USERNAME and JELLYFIN_PASSWORD are required")
    if not (settings.sonarr_configured or settings.radarr_configured):
        problems.append(
            "Configure SONARR_URL/SONARR_API_KEY and/or RADARR_URL/RADARR_API_KEY"
        )
    return problems


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = settings_from_args(args)
    except ValidationError as exc:
        logging.basicConfig(level=logging.INFO)
        logger.error("Invalid configuration: %s", exc)
        return 1

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    problems = check_credentials(settings)
    if problems:
        for problem in problems:
            logger.error("Missing credentials: %s", problem)
        return 1

    logger.info("Starting unwatched media cleanup...")
    if settings.dry_run:
        logger.info("Running in dry-run mode; nothing will be deleted")

    try:
        asyncio.run(run(settings))
    except Exception:
        logger.exception("Cleanup run failed")
        return 1
    return 0


def run_cli() -> None:  # pragma: no cover - console script wrapper
    sys.exit(main())
