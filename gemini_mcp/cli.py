"""Command-line entry point."""

import argparse
import logging
import sys
from typing import List, Optional

from . import BUILD_TIME, DESCRIPTION, GIT_COMMIT, SERVICE_NAME, __version__
from .config import TRANSPORT_ALIASES, TRANSPORTS, load_config
from .errors import ConfigurationError
from .logging_setup import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=SERVICE_NAME, description=DESCRIPTION)
    parser.add_argument(
        "--transport",
        choices=TRANSPORTS + tuple(TRANSPORT_ALIASES),
        default=None,
        help="Transport type (overrides the TRANSPORT environment variable)",
    )
    parser.add_argument("--version", action="store_true", help="Show version information")
    return parser


def version_text() -> str:
    return "\n".join([
        f"{SERVICE_NAME} v{__version__}",
        DESCRIPTION,
        f"Built: {BUILD_TIME}",
        f"Commit: {GIT_COMMIT}",
    ])


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the MCP server."""
    args = build_parser().parse_args(argv)

    if args.version:
        print(version_text())
        return 0

    configure_logging()
    try:
        config = load_config().with_transport(args.transport)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 1
    configure_logging(config.log_level)

    # imported here so --version works without the SDK stack loaded
    from .server import create_server

    try:
        mcp = create_server(config)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 1
    except Exception as e:
        logger.error("Failed to create Gemini client: %s", e)
        return 1

    logger.info("Starting %s v%s (Transport: %s)", SERVICE_NAME, __version__, config.transport)
    mcp.run(transport=config.transport)
    return 0


def run() -> None:
    sys.exit(main())
