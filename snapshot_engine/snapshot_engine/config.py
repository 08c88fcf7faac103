"""Snapshot core configuration loaded from environment variables."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from snapshot_engine.diff.json_diff import DEFAULT_MAX_DEPTH

logger = logging.getLogger(__name__)


class PlatformEnv(str, Enum):
    DEV = "dev"
    STAGING = "staging"
    PROD = "prod"


class Settings(BaseSettings):
    """Core settings loaded from environment variables with SNAPSHOT_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="SNAPSHOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    env: PlatformEnv = PlatformEnv.DEV
    debug: bool = False

    # Index database
    database_url: str = "sqlite+aiosqlite:///.hostsnap/index.db"
    database_pool_size: int = 10
    database_max_overflow: int = 20

    # Snapshot storage
    snapshot_root: Path = Path("./snapshots")
    max_snapshot_bytes: int = Field(default=25 << 20, gt=0)

    # Diff engine
    diff_max_depth: int = Field(default=DEFAULT_MAX_DEPTH, gt=0)

    # Telemetry
    structured_logging: bool = False

    def is_local_index(self) -> bool:
        return self.database_url.startswith("sqlite")


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info("Loaded settings for environment: %s", settings.env.value)

    return settings
