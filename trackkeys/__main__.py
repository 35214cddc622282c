"""
trackkeys - Entry Point

Run with: python -m trackkeys
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

from trackkeys import __version__
from trackkeys.config import AppConfig, load_config
from trackkeys.core.migrator import IncrementalRunResult
from trackkeys.server import TrackKeysServer


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="trackkeys",
        description="Migrate legacy path keys in the music player's persisted stores",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="TOML config layered over the bundled defaults",
    )

    parser.add_argument(
        "--base-dir",
        type=Path,
        default=None,
        help="Directory holding the tracked store files (overrides config)",
    )

    parser.add_argument(
        "--prefs-db",
        type=Path,
        default=None,
        help="Preferences database path (overrides config)",
    )

    parser.add_argument(
        "--force",
        action="store_true",
        help="Migrate even if the stores look unchanged since the last run",
    )

    parser.add_argument(
        "--serve",
        action="store_true",
        help="Keep running and serve the status API after migrating",
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Web host address (overrides config)",
    )

    parser.add_argument(
        "--web-port",
        type=int,
        default=None,
        help="Web port (overrides config)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> AppConfig:
    """Apply command line overrides to the loaded configuration."""
    config = load_config(args.config)

    storage = config.storage
    if args.base_dir is not None:
        storage = replace(storage, app_support_dir=args.base_dir.expanduser())
    if args.prefs_db is not None:
        storage = replace(storage, preferences_db=args.prefs_db.expanduser())

    web = config.web
    if args.host is not None:
        web = replace(web, host=args.host)
    if args.web_port is not None:
        web = replace(web, port=args.web_port)

    return replace(config, storage=storage, web=web)


async def run_server(config: AppConfig, *, serve: bool, force: bool) -> IncrementalRunResult | None:
    """Start and run trackkeys."""
    server = TrackKeysServer(config, serve_web=serve, force_migration=force)
    return await server.run()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    logger = logging.getLogger(__name__)

    try:
        config = build_config(args)
        report = asyncio.run(run_server(config, serve=args.serve, force=args.force))
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user")
        return 0
    except Exception as e:
        logger.exception("Fatal error: %s", e)
        return 1

    if report is not None and not report.result.succeeded:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
