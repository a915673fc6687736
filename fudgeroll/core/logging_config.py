"""
Logging configuration for Fudge Roll.

Color-coded console output via colorama, optional plain-text log file.
"""

import logging
import sys
from typing import Optional, TYPE_CHECKING
from colorama import Fore, Back, Style, init

if TYPE_CHECKING:
    from .config import Config

init(autoreset=True)

DEFAULT_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name (DEBUG cyan, INFO green, WARNING yellow, ERROR red)."""

    COLORS = {
        'DEBUG': Fore.CYAN,
        'INFO': Fore.GREEN,
        'WARNING': Fore.YELLOW,
        'ERROR': Fore.RED,
        'CRITICAL': Fore.RED + Back.WHITE + Style.BRIGHT,
    }

    def format(self, record):
        color = self.COLORS.get(record.levelname, '')
        original_levelname = record.levelname
        record.levelname = f"{color}{record.levelname}{Style.RESET_ALL}"
        try:
            return super().format(record)
        finally:
            # Other handlers share the record
            record.levelname = original_levelname


def setup_logging(
    level: str = 'INFO',
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    use_colors: bool = True
) -> logging.Logger:
    """
    Configure the root logger.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output (always uncolored, DEBUG)
        format_string: Optional custom format string
        use_colors: Whether to color console output

    Returns:
        Configured root logger
    """
    format_string = format_string or DEFAULT_FORMAT
    numeric_level = getattr(logging, level.upper())

    logger = logging.getLogger()
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    if use_colors:
        console_handler.setFormatter(ColoredFormatter(format_string))
    else:
        console_handler.setFormatter(logging.Formatter(format_string))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(format_string))
        logger.addHandler(file_handler)

    return logger


def setup_logging_from_config(config: 'Config', use_colors: bool = True) -> logging.Logger:
    """Configure logging from a Config's LOG_LEVEL and LOG_FILE."""
    return setup_logging(level=config.log_level, log_file=config.log_file, use_colors=use_colors)


__all__ = ['setup_logging', 'setup_logging_from_config', 'ColoredFormatter']
