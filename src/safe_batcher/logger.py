"""Logging configuration for safe-batcher."""

from __future__ import annotations

import logging
import os
import sys

# Define TRACE level (lower than DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

NOISY_LOGGERS = ("web3", "urllib3")


class ColoredFormatter(logging.Formatter):
    """Colored log formatter using ANSI escape codes."""

    COLORS = {
        "TRACE": "\033[90m",  # Dark gray
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[levelname]}{self.BOLD}{levelname}{self.RESET}"
            )

        result = super().format(record)

        record.levelname = levelname

        return result


def resolve_level(log_level: str | None = None) -> tuple[str, int]:
    """Pick the level name from the argument, then ``LOG_LEVEL``, then INFO."""
    name = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if name == "TRACE":
        return name, TRACE
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        return "INFO", logging.INFO
    return name, level


def setup_logging(log_level: str | None = None) -> None:
    """Configure a single colored stdout handler on the root logger.

    At DEBUG, web3 and urllib3 stay at WARNING; use TRACE to see them.
    """
    name, level = resolve_level(log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        ColoredFormatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    logging.basicConfig(level=level, handlers=[handler], force=True)

    for noisy in NOISY_LOGGERS:
        if name == "DEBUG":
            logging.getLogger(noisy).setLevel(logging.WARNING)
        elif name == "TRACE":
            logging.getLogger(noisy).setLevel(TRACE)
