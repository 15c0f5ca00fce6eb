"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database (in-memory repositories when unset)
    database_url: str | None = None

    # Uploaded file storage
    storage_dir: str = "./storage"

    # Text generation service
    openai_api_key: SecretStr | None = None
    openai_model: str = "gpt-4o-mini"
    generation_max_tokens: int = 8192
    generation_timeout_seconds: float = 120.0

    # Boundary resolution
    boundary_min_distance: int = 100
    fuzzy_min_prefix_chars: int = 15
    fuzzy_prefix_step: int = 10
    fuzzy_window_chars: int = 200

    # Segmentation thresholds (characters)
    min_segment_chars: int = 50
    min_extracted_chars: int = 50
    fallback_chapter_title: str = "Full Course"

    # Prompt input caps (characters)
    segmentation_input_chars: int = 80_000
    enrichment_input_chars: int = 30_000
    max_chapters: int = 20

    # Pipeline behaviour
    enrich_chapters: bool = True
    progress_grace_seconds: float = 10.0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
