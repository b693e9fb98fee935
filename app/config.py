# app/config.py
from __future__ import annotations

from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# This file lives in <repo>/app/config.py → parents[1] = repo root
REPO_ROOT = Path(__file__).resolve().parents[1]
ENV_FILE = REPO_ROOT / ".env"
load_dotenv(ENV_FILE, override=False)  # pre-load into process environment


class Settings(BaseSettings):
    # ---- App ----
    APP_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    CORS_ALLOWED_ORIGINS: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    )

    # ---- Source registry ----
    NEWS_SOURCES_PATH: Path = REPO_ROOT / "configs" / "news_sources.yml"

    # ---- Fetching ----
    NEWS_FETCH_TIMEOUT_MS: int = Field(default=15000, ge=1)
    NEWS_MAX_CONCURRENCY: int = Field(default=8, ge=1)
    NEWS_FETCH_CACHE_TTL_S: int = Field(default=3600, ge=0)
    NEWS_USER_AGENT: str = "Mozilla/5.0 (compatible; RSS Reader Bot/1.0)"

    # ---- Filtering & paging ----
    NEWS_RETENTION_DAYS: int = Field(default=7, ge=1)
    NEWS_ITEMS_PER_PAGE: int = Field(default=12, ge=1)
    NEWS_MAX_ITEMS_PER_PAGE: int = Field(default=100, ge=1)

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",                  # ignore unrelated .env keys
    )


settings = Settings()


def clamp_items_per_page(value: int | None) -> int:
    """
    Bring a requested page size into [1, NEWS_MAX_ITEMS_PER_PAGE].
    Missing values fall back to NEWS_ITEMS_PER_PAGE.
    """
    if value is None:
        return settings.NEWS_ITEMS_PER_PAGE
    return max(1, min(int(value), settings.NEWS_MAX_ITEMS_PER_PAGE))
