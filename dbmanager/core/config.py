"""Configuration management using Pydantic Settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings loaded from environment variables."""

    model_config = SettingsConfigDict(extra="ignore")

    # Pool sizing: one live connection per (engine, database) pair
    EXTERNAL_DB_POOL_SIZE: int = Field(default=1, ge=1)
    EXTERNAL_DB_POOL_MIN_IDLE: int = Field(default=1, ge=0)
    # Seconds to wait for a free connection before giving up
    EXTERNAL_DB_POOL_TIMEOUT: float = Field(default=30.0, gt=0)
    # Driver-level connect timeout (seconds)
    EXTERNAL_DB_CONNECT_TIMEOUT: int = Field(default=10, ge=1)


settings = Settings()
