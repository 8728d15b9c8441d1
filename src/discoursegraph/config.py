"""Centralized configuration using pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root directory
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "data"
DEFAULT_DATA_PATH = DATA_DIR / "discourse_graph.json"


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Dataset ---
    data_path: Path = DEFAULT_DATA_PATH

    # --- Node URLs ---
    graph_name: str = "akamatsulab"
    node_url_template: str = "https://roamresearch.com/#/app/{graph}/page/{uid}"

    # --- Images ---
    image_url_prefix: str = "https://firebasestorage.googleapis.com/"
    image_fetch_timeout: float = 15.0

    # --- Search ---
    search_default_limit: int = 10
    snippet_max_length: int = 200

    # --- App ---
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
