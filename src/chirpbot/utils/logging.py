"""
Logging setup for the chirp bot.

Console output is colored by level when attached to a TTY, an optional
log file receives the same records uncolored, and every handler runs
through a filter that masks Twitch credentials.
"""

from __future__ import annotations

import logging
import re
import sys
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chirpbot.config import Config

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
ROOT_LOGGER = "chirpbot"


class SecretFilter(logging.Filter):
    """Masks registered secrets in log messages and their arguments."""

    def __init__(self, secrets: list[str] | None = None) -> None:
        super().__init__()
        self._pattern: re.Pattern[str] | None = None
        if secrets:
            self.set_secrets(secrets)

    def set_secrets(self, secrets: list[str]) -> None:
        """
        Replace the set of masked values.

        Values of three characters or fewer are ignored, they would
        mangle ordinary words.
        """
        usable = [s for s in secrets if s and len(s) > 3]
        if usable:
            self._pattern = re.compile("|".join(re.escape(s) for s in usable), re.IGNORECASE)
        else:
            self._pattern = None

    def _mask(self, value: object) -> object:
        if self._pattern and isinstance(value, str):
            return self._pattern.sub("[REDACTED]", value)
        return value

    def filter(self, record: logging.LogRecord) -> bool:
        if self._pattern is None:
            return True

        record.msg = self._mask(record.msg)
        if isinstance(record.args, dict):
            record.args = {k: self._mask(v) for k, v in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(self._mask(arg) for arg in record.args)
        return True


class ColoredFormatter(logging.Formatter):
    """Formatter that wraps each line in an ANSI color picked by level."""

    COLORS = {
        logging.DEBUG: "\033[36m",  # Cyan
        logging.INFO: "\033[32m",  # Green
        logging.WARNING: "\033[33m",  # Yellow
        logging.ERROR: "\033[31m",  # Red
        logging.CRITICAL: "\033[41m",  # Red background
    }
    RESET = "\033[0m"

    def __init__(self, fmt: str | None = None, use_colors: bool = True) -> None:
        super().__init__(fmt)
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = self.COLORS.get(record.levelno) if self.use_colors else None
        if color:
            return f"{color}{message}{self.RESET}"
        return message


def setup_logging(config: Config) -> None:
    """
    Configure the ``chirpbot`` logger tree from the bot configuration.

    Args:
        config: Bot configuration with log settings
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, config.log_level, logging.INFO))
    logger.handlers.clear()

    secret_filter = SecretFilter(config.secrets)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ColoredFormatter(LOG_FORMAT))
    console_handler.addFilter(secret_filter)
    logger.addHandler(console_handler)

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.addFilter(secret_filter)
        logger.addHandler(file_handler)

    # TwitchIO is chatty at INFO
    twitchio_logger = logging.getLogger("twitchio")
    twitchio_logger.setLevel(logging.WARNING)
    for handler in logger.handlers:
        twitchio_logger.addHandler(handler)

    logger.debug("Logging initialized with level %s", config.log_level)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module, nested under the ``chirpbot`` logger.

    Args:
        name: Module name (usually __name__)
    """
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
