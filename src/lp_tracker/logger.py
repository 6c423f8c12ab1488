"""Simple logging configuration for lp-tracker."""

from __future__ import annotations

import logging
import os
import sys

# Define TRACE level (lower than DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


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
        """Format log record with colors."""
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[levelname]}{self.BOLD}{levelname}{self.RESET}"
            )

        result = super().format(record)

        record.levelname = levelname

        return result


def resolve_level(log_level: str) -> int:
    """Map a level name (including TRACE) to its numeric value, defaulting to INFO."""
    name = log_level.upper()
    if name == "TRACE":
        return TRACE
    return getattr(logging, name, logging.INFO)


def use_color() -> bool:
    """Colors only on an interactive stderr, and never when NO_COLOR is set."""
    return "NO_COLOR" not in os.environ and sys.stderr.isatty()


def setup_logging(log_level: str | None = None) -> None:
    """Configure logging for the application.

    Uses ``log_level`` when given, otherwise the LOG_LEVEL environment
    variable (defaults to INFO). Logs go to stderr so that ``--json``
    output on stdout stays machine readable; colors are dropped when
    stderr is redirected.

    When the level is DEBUG, web3 and urllib3 loggers are set to WARNING
    to reduce noise. Use TRACE to see all web3/urllib3 logs.
    """
    name = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    level = resolve_level(name)

    handler = logging.StreamHandler(sys.stderr)
    formatter_cls = ColoredFormatter if use_color() else logging.Formatter
    formatter = formatter_cls(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[handler],
        force=True,
    )

    if name == "DEBUG":
        logging.getLogger("web3").setLevel(logging.WARNING)
        logging.getLogger("urllib3").setLevel(logging.WARNING)
    elif name == "TRACE":
        logging.getLogger("web3").setLevel(TRACE)
        logging.getLogger("urllib3").setLevel(TRACE)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module.

    Args:
        name: Usually __name__ of the calling module

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
