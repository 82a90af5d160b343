"""
Configuration settings for the movie store
"""
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Store settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Paths
    DATA_DIR: Path = Field(
        default=Path.home() / ".movieshelf",
        validation_alias="MOVIESHELF_DATA_DIR",
    )
    DB_EXTENSION: str = Field(default=".db", validation_alias="MOVIESHELF_DB_EXTENSION")

    # Busy handling
    BUSY_TIMEOUT_SECONDS: float = Field(default=5.0, validation_alias="MOVIESHELF_BUSY_TIMEOUT")
    BUSY_RETRY_INTERVAL_SECONDS: float = Field(
        default=0.15, validation_alias="MOVIESHELF_BUSY_RETRY_INTERVAL"
    )
    # None retries until the engine stops reporting busy
    BUSY_MAX_RETRIES: Optional[int] = Field(
        default=200, validation_alias="MOVIESHELF_BUSY_MAX_RETRIES"
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", validation_alias="MOVIESHELF_LOG_LEVEL")


def get_db_path(name: str, config: Optional[Settings] = None) -> Path:
    """Return the backing file for the store called ``name``.

    One file per distinct name, inside the configured data directory.
    """
    config = config or settings
    if not name or not name.strip():
        raise ValueError("Store name must not be empty")
    if "/" in name or "\\" in name or name in (".", ".."):
        raise ValueError(f"Store name must not contain a path: {name!r}")
    return Path(config.DATA_DIR).expanduser() / f"{name}{config.DB_EXTENSION}"


# Global settings instance
settings = Settings()
