"""Command line runner: ``python -m atmosync``."""

from __future__ import annotations

import argparse
import asyncio
import logging

from . import __version__
from .app import AtmoSync
from .config import load_config
from .models import ReauthorizationRequested


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="atmosync",
        description="Keep weather-station telemetry in sync with the dashboard backend",
    )
    parser.add_argument(
        "--config", default="atmosync.yaml",
        help="Path to YAML config (default: atmosync.yaml)",
    )
    parser.add_argument(
        "--base-url",
        help="Backend base URL, overrides the config file",
    )
    parser.add_argument(
        "--log-level", default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set the logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--version", action="version",
        version=f"atmosync {__version__}",
    )
    return parser.parse_args(argv)


def setup_logging(level_name: str) -> None:
    """Configure root logger with a consistent format."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-7s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )


async def run(args: argparse.Namespace) -> None:
    logger = logging.getLogger(__name__)
    config = load_config(args.config)
    if args.base_url:
        config.base_url = args.base_url

    sync = AtmoSync(config)

    def on_reauthorization(event: ReauthorizationRequested) -> None:
        logger.warning("Open %s%s to authorize this device", config.base_url, event.url)

    sync.session.add_reauthorization_listener(on_reauthorization)
    async with sync:
        await asyncio.Event().wait()


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.log_level)

    logger = logging.getLogger(__name__)
    logger.info("atmosync v%s starting", __version__)
    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        logger.info("Shutdown complete")


if __name__ == "__main__":
    main()
