"""Centralized configuration for threadleak using Pydantic Settings (v2).

This module exposes a cached `settings` instance that reads from:
- Real environment variables (highest precedence)
- `.env` files in the working directory: .env, .env.local, .env.test

The only switch that changes *behavior* rather than tuning is
``THREADLEAK_TRACEBACK_ANCESTORS``: when it is a positive integer, every new
thread records the ids of the threads that created it (see
:mod:`threadleak.core.ancestry`), which is what makes
:func:`threadleak.core.ignore.ignore_non_children` usable.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Typed configuration loaded from env and `.env` files.

    Attributes
    ----------
    log_level : LogLevelName
        Global log level string; maps from `LOG_LEVEL`.
    traceback_ancestors : int
        Maximum number of ancestor ids recorded per thread. Zero disables
        ancestry tracking. Maps from `THREADLEAK_TRACEBACK_ANCESTORS`.
    capture_buffer_floor : int
        Initial dump buffer size in bytes; doubled until the dump fits.
    max_frames : int
        Frames rendered per thread before the elision marker kicks in.
    default_max_wait : float
        Seconds a leak check waits when the caller passes ``<= 0``.
    max_backoff : float
        Upper bound, in seconds, of a single polling sleep.
    """

    log_level: LogLevelName = Field(default="INFO", alias="LOG_LEVEL")
    traceback_ancestors: int = Field(default=0, ge=0, alias="THREADLEAK_TRACEBACK_ANCESTORS")
    capture_buffer_floor: int = Field(
        default=1024 * 1024, gt=0, alias="THREADLEAK_CAPTURE_BUFFER_FLOOR"
    )
    max_frames: int = Field(default=100, ge=2, alias="THREADLEAK_MAX_FRAMES")
    default_max_wait: float = Field(default=3.0, gt=0, alias="THREADLEAK_DEFAULT_MAX_WAIT")
    max_backoff: float = Field(default=0.3, gt=0, alias="THREADLEAK_MAX_BACKOFF")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local", ".env.test"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def ancestry_enabled(self) -> bool:
        """Return True if thread ancestry tracking is switched on."""
        return self.traceback_ancestors > 0

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.INFO)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Create and cache a `Settings` instance.

    We keep this behind an LRU cache so tests can force a rebuild via
    `load_settings.cache_clear()` after mutating `os.environ`.
    """
    return Settings()


# Export a ready-to-use singleton (import-time read of env / .env files).
settings: Settings = load_settings()


def get_logger(name: str = "threadleak") -> logging.Logger:
    """Return a process-global logger configured to the current `LOG_LEVEL`."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(load_settings().log_level_numeric())
    logger.propagate = False
    return logger
