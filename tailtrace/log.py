"""Logging configuration for the tailtrace application.

This module provides centralized logging setup and configuration
for the converter and the command line tools, with colored level names.
Request logs from the collector HTTP client are only shown at DEBUG.
"""

import logging

from colorama import Fore, Style, init

from tailtrace.config import Config

# Initialize colorama for cross-platform colored output
init(autoreset=True)

logger = logging.getLogger("tailtrace")


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds colors to log levels."""

    COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.BLUE,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    def format(self, record):
        original_format = super().format(record)

        color = self.COLORS.get(record.levelno, "")

        # Colorize only the level name: time - name - level - message
        if color:
            parts = original_format.split(" - ", 3)
            if len(parts) >= 3:
                parts[2] = f"{color}{parts[2]}{Style.RESET_ALL}"
                return " - ".join(parts)

        return original_format


def init_logger(config: Config):
    """Initialize the logger with colored output."""
    log_level = config.log_level
    logger.setLevel(log_level)

    # Clear any existing handlers to avoid duplicates
    logger.handlers.clear()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(log_level)

    formatter = ColoredFormatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    logger.propagate = False

    # httpx logs every export request at INFO
    logging.getLogger("httpx").setLevel(
        logging.DEBUG if log_level == "DEBUG" else logging.WARNING
    )
