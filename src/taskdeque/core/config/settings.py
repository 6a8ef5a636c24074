from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Process-wide configuration.

    This class is the single source of truth for:
    - environment selection
    - logging behavior
    - default timeout budget for new sequencers
    - journal durability
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKDEQUE_",
        env_file=".env",
        extra="ignore",
    )

    # ---- Environment -------------------------------------------------

    env: Literal["local", "staging", "prod"] = "local"

    # ---- Logging -----------------------------------------------------

    log_level: str = "INFO"

    # ---- Sequencers --------------------------------------------------

    # Seconds a step may run before the sequence times out
    default_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Default timeout budget between consecutive next() calls",
    )

    # ---- Journal -----------------------------------------------------

    journal_fsync: bool = Field(
        default=True,
        description="fsync the journal after every appended line",
    )


# Singleton settings object
settings = AppSettings()
