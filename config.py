"""
config.py
---------
Centralised configuration management for the MySQL schema/data diff tool.

Loads settings from environment variables (with .env file support via
python-dotenv). Provides typed, validated settings as frozen dataclasses
so configuration is immutable at runtime.

Design Decision:
    Using dataclasses with environment-backed defaults means the tool works
    "out of the box" without any .env file, while still allowing
    environment-based overrides per deployment.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

_env_path = Path(__file__).parent / ".env"
if _env_path.exists():
    load_dotenv(dotenv_path=_env_path)


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection defaults applied when a URL omits them."""
    host: str = field(default_factory=lambda: os.getenv("DB_HOST", "localhost"))
    port: int = field(default_factory=lambda: int(os.getenv("DB_PORT", "3306")))
    charset: str = field(default_factory=lambda: os.getenv("DB_CHARSET", "utf8mb4"))
    connect_timeout: int = field(
        default_factory=lambda: int(os.getenv("DB_CONNECT_TIMEOUT", "10"))
    )
    # Username / password are NOT stored here; they only ever travel inside
    # a ConnectionConfig built by the caller.


@dataclass(frozen=True)
class DiffConfig:
    """Diff engine and output settings."""
    log_level: str = field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper()
    )
    log_file: str | None = field(
        default_factory=lambda: os.getenv("LOG_FILE")  # None → log to stderr only
    )
    output_dir: Path = field(
        default_factory=lambda: Path(os.getenv("OUTPUT_DIR", "."))
    )


@dataclass(frozen=True)
class AppConfig:
    """Root application configuration."""
    db: DatabaseConfig = field(default_factory=DatabaseConfig)
    diff: DiffConfig = field(default_factory=DiffConfig)
    app_name: str = "dbdiff"
    app_version: str = "1.0.0"


def load_config() -> AppConfig:
    """
    Build and return the application configuration.

    Returns:
        AppConfig: Fully populated (and frozen) configuration object.

    Example::

        cfg = load_config()
        print(cfg.db.host)          # "localhost"
        print(cfg.diff.log_level)   # "INFO"
    """
    return AppConfig()


# Module-level singleton used throughout the application
CONFIG: AppConfig = load_config()


def get_log_level() -> int:
    """Convert string log level from config to logging module constant."""
    level = getattr(logging, CONFIG.diff.log_level, None)
    if not isinstance(level, int):
        return logging.INFO
    return level
