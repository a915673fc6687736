"""
Configuration management for Fudge Roll.

Provides centralized configuration loading from environment variables
with sensible defaults for all settings.
"""

import os
from pathlib import Path
from typing import Optional
import logging

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ROLL_MODES = ('publicroll', 'gmroll', 'blindroll', 'selfroll')


class Config:
    """
    Centralized configuration management for Fudge Roll.

    Loads configuration from environment variables with fallback defaults.
    Supports .env files via python-dotenv.

    Example:
        config = Config()
        print(config.max_attempts)  # 10000
        print(config.port)          # 5000
    """

    def __init__(self, env_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            env_file: Optional path to .env file. If None, auto-discovers .env
                     in project root or skips if not found.
        """
        if env_file:
            load_dotenv(env_file)
            logger.info(f"Loaded configuration from {env_file}")
        else:
            project_root = Path(__file__).parent.parent.parent
            env_path = project_root / '.env'
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded configuration from {env_path}")
            else:
                logger.debug("No .env file found, using environment variables and defaults")

        # === Seeking ===
        self.max_attempts = int(os.getenv('FUDGE_MAX_ATTEMPTS', '10000'))
        self.max_seconds = float(os.getenv('FUDGE_MAX_SECONDS', '0'))
        seed = os.getenv('FUDGE_SEED', '')
        self.seed: Optional[int] = int(seed) if seed else None

        # === Chat ===
        self.roll_mode = os.getenv('FUDGE_ROLL_MODE', 'publicroll')

        # === Server Settings ===
        self.host = os.getenv('HOST', '127.0.0.1')
        self.port = int(os.getenv('PORT', '5000'))
        self.debug = os.getenv('DEBUG', 'False').lower() in ('true', '1', 'yes')

        # === Logging ===
        self.log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
        self.log_file = os.getenv('LOG_FILE', None)

    def validate(self) -> bool:
        """
        Validate configuration and log problems.

        Returns:
            True if config is valid, False if critical values are wrong
        """
        valid = True

        if self.max_attempts < 1:
            logger.error(f"Invalid FUDGE_MAX_ATTEMPTS: {self.max_attempts}. Must be at least 1")
            valid = False

        if self.max_seconds < 0:
            logger.error(f"Invalid FUDGE_MAX_SECONDS: {self.max_seconds}. Must be 0 or positive")
            valid = False

        if self.roll_mode not in ROLL_MODES:
            logger.warning(
                f"Unknown FUDGE_ROLL_MODE '{self.roll_mode}', falling back to 'publicroll'. "
                f"Must be one of: {', '.join(ROLL_MODES)}"
            )
            self.roll_mode = 'publicroll'

        if self.seed is not None:
            logger.warning("FUDGE_SEED is set. Rolls are deterministic.")

        return valid

    def __repr__(self) -> str:
        return (
            f"Config("
            f"max_attempts={self.max_attempts}, "
            f"max_seconds={self.max_seconds}, "
            f"roll_mode={self.roll_mode}, "
            f"host={self.host}, "
            f"port={self.port}, "
            f"debug={self.debug})"
        )


# Global config instance (lazy-loaded)
_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global config instance (singleton pattern).

    Returns:
        Global Config instance

    Example:
        from fudgeroll.core.config import get_config
        config = get_config()
        print(config.max_attempts)
    """
    global _config
    if _config is None:
        _config = Config()
        _config.validate()
    return _config


__all__ = ['Config', 'get_config', 'ROLL_MODES']
