"""Logging to stderr.

stdout carries the MCP stdio transport, so every log line goes to stderr.
"""

import logging
import sys

LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"
PACKAGE_LOGGER = "gemini_mcp"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a single stderr handler to the package logger."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(level.upper())
    logger.propagate = False
    return logger
