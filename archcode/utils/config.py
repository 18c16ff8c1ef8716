"""Application configuration."""
from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from .env and ARCHCODE_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="ARCHCODE_", env_file=".env", env_file_encoding="utf-8")

    identifiers: Literal["flat", "hierarchical"] = "flat"
    theme_timeout: float = Field(default=30.0, gt=0)
    log_level: str = "WARNING"
    rank_separation: int = 300
    node_separation: int = 300
    output_dir: str = "outputs"


settings = Settings()
