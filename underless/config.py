"""
Configuration management for the Under or Higher game.

Reads configuration from a .env file and environment variables with sensible defaults.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from underless.catalog.artist_catalog import DEFAULT_CATALOG_PATH
from underless.persistence.state_gateway import DEFAULT_STATE_KEY

DEFAULT_ENV_FILE = Path(".env")

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

logger = logging.getLogger(__name__)


def _load_env_file() -> None:
    """Load environment variables from .env file if it exists."""
    env_path = Path(os.getenv("UNDERLESS_ENV_FILE", str(DEFAULT_ENV_FILE)))

    if env_path.exists():
        load_dotenv(env_path, override=False)  # Don't override existing env vars
        logger.debug(f"[CONFIG] Loaded environment from {env_path}")


def _int_env(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Invalid {name}: {raw} (must be an integer)")


def _float_env(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Invalid {name}: {raw} (must be a number)")


@dataclass
class GameConfig:
    """Game configuration loaded from .env file and environment variables."""

    # Catalog and storage
    catalog_path: str = str(DEFAULT_CATALOG_PATH)
    state_path: str = "/tmp/underless_uoh_state.json"
    state_key: str = DEFAULT_STATE_KEY

    # Selection history windows
    memory_limit: int = 20
    relaxed_memory: int = 5
    min_fresh_candidates: int = 3

    # Pause between a correct guess and the next pair
    reveal_delay_sec: float = 1.5

    # Random seed for reproducible runs (None = unseeded)
    seed: Optional[int] = None

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def load_config(cls) -> "GameConfig":
        """
        Load configuration from environment variables.

        Returns:
            GameConfig instance with loaded values

        Raises:
            ValueError: If configuration is invalid
        """
        # Load .env file first (if it exists)
        _load_env_file()

        catalog_path = os.getenv("UNDERLESS_CATALOG_PATH") or str(DEFAULT_CATALOG_PATH)
        state_path = os.getenv("UNDERLESS_STATE_PATH") or "/tmp/underless_uoh_state.json"
        state_key = os.getenv("UNDERLESS_STATE_KEY") or DEFAULT_STATE_KEY

        memory_limit = _int_env("UNDERLESS_MEMORY_LIMIT", "20")
        relaxed_memory = _int_env("UNDERLESS_RELAXED_MEMORY", "5")
        min_fresh_candidates = _int_env("UNDERLESS_MIN_FRESH_CANDIDATES", "3")
        reveal_delay_sec = _float_env("UNDERLESS_REVEAL_DELAY_SEC", "1.5")

        seed_str = os.getenv("UNDERLESS_SEED", "")
        seed = None
        if seed_str:
            try:
                seed = int(seed_str)
            except ValueError:
                raise ValueError(f"Invalid UNDERLESS_SEED: {seed_str} (must be an integer)")

        log_level = os.getenv("UNDERLESS_LOG_LEVEL", "INFO").upper()
        log_file = os.getenv("UNDERLESS_LOG_FILE") or None

        config = cls(
            catalog_path=catalog_path,
            state_path=state_path,
            state_key=state_key,
            memory_limit=memory_limit,
            relaxed_memory=relaxed_memory,
            min_fresh_candidates=min_fresh_candidates,
            reveal_delay_sec=reveal_delay_sec,
            seed=seed,
            log_level=log_level,
            log_file=log_file,
        )

        # Validate configuration
        config.validate()

        return config

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: If configuration is invalid
        """
        if self.memory_limit < 1:
            raise ValueError(f"Invalid memory_limit: {self.memory_limit} (must be >= 1)")

        if self.relaxed_memory < 0 or self.relaxed_memory > self.memory_limit:
            raise ValueError(
                f"Invalid relaxed_memory: {self.relaxed_memory} (must be between 0 and memory_limit={self.memory_limit})"
            )

        if self.min_fresh_candidates < 0:
            raise ValueError(f"Invalid min_fresh_candidates: {self.min_fresh_candidates} (must be >= 0)")

        if self.reveal_delay_sec < 0:
            raise ValueError(f"Invalid reveal_delay_sec: {self.reveal_delay_sec} (must be >= 0)")

        if not self.state_key:
            raise ValueError("state_key cannot be empty")

        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {self.log_level} (must be one of {', '.join(VALID_LOG_LEVELS)})")
