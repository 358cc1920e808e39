"""Configuration management for varscope.

Loads environment variables (optionally from a .env file) and exposes typed
settings. Analysis functions take plain parameters; only the CLI and workspace
orchestration read this object.
"""
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

__version__ = "1.0.0"

DEFAULT_FILE_PATTERNS = "**/*.js,**/*.jsx,**/*.ts,**/*.tsx"

_INTEGER_SETTINGS = {
    "VARSCOPE_CONTEXT_WIDTH": 50,
    "VARSCOPE_VALUE_WIDTH": 50,
    "VARSCOPE_MIN_BLOCK_SPAN": 2,
    "VARSCOPE_HOTSPOT_THRESHOLD": 10,
    "VARSCOPE_MAX_DEPENDENCY_VARIABLES": 500,
}


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, env_file: Optional[str | Path] = None):
        """Initialize config by loading a .env file.

        Args:
            env_file: Path to a .env file; defaults to .env in the working
                directory. Variables already set in the environment win.
        """
        load_dotenv(Path(env_file) if env_file else Path.cwd() / ".env")
        self._validate()

    def _validate(self):
        """Validate numeric settings.

        Raises:
            ValueError: If a numeric setting is not a non-negative integer
        """
        for key in _INTEGER_SETTINGS:
            self._int_setting(key)

    @staticmethod
    def _int_setting(key: str) -> int:
        raw = os.getenv(key)
        if raw is None or raw.strip() == "":
            return _INTEGER_SETTINGS[key]
        try:
            value = int(raw)
        except ValueError:
            raise ValueError(f"{key} must be an integer, got {raw!r}") from None
        if value < 0:
            raise ValueError(f"{key} must not be negative, got {value}")
        return value

    @property
    def context_width(self) -> int:
        """Characters of context kept on each side of a reference."""
        return self._int_setting("VARSCOPE_CONTEXT_WIDTH")

    @property
    def value_width(self) -> int:
        """Maximum initializer length shown in tables."""
        return self._int_setting("VARSCOPE_VALUE_WIDTH")

    @property
    def min_block_span(self) -> int:
        """Minimum line span for a brace pair to count as a block scope."""
        return self._int_setting("VARSCOPE_MIN_BLOCK_SPAN")

    @property
    def hotspot_threshold(self) -> int:
        """Reference count at which a name is reported as a hotspot."""
        return self._int_setting("VARSCOPE_HOTSPOT_THRESHOLD")

    @property
    def max_dependency_variables(self) -> Optional[int]:
        """Per-file variable count above which the dependency pass is skipped.

        Returns:
            Limit, or None when set to 0 (never skip)
        """
        limit = self._int_setting("VARSCOPE_MAX_DEPENDENCY_VARIABLES")
        return limit or None

    @property
    def file_patterns(self) -> List[str]:
        """Glob patterns for source files in a workspace scan."""
        raw = os.getenv("VARSCOPE_FILE_PATTERNS", DEFAULT_FILE_PATTERNS)
        return [pattern.strip() for pattern in raw.split(",") if pattern.strip()]

    @property
    def log_level(self) -> str:
        """Logging level name for the CLI."""
        return os.getenv("VARSCOPE_LOG_LEVEL", "WARNING").upper()


# Singleton instance
_config = None


def get_config() -> Config:
    """Get or create the CLI's Config instance.

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config
