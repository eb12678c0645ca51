"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Credentials never live here: the viewer credential comes from the identity provider
    - get_settings() is cached (lru_cache) — single instance per process
    - Base URLs are stored without a trailing slash

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all settings: works out-of-the-box against a local dev server
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Favour API
    favour_api_base_url: str = "http://localhost:3000/api"
    favour_api_timeout_seconds: float = 30.0
    favour_api_max_retries: int = 3
    favour_api_base_delay_ms: int = 250
    favour_api_max_delay_ms: int = 10_000

    # Blob store
    blob_store_base_url: str = "http://localhost:9199/v0"
    blob_store_bucket: str = "favours-dev"
    blob_store_timeout_seconds: float = 120.0

    # Evidence
    evidence_default_extension: str = "png"

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("favour_api_base_url", "blob_store_base_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if isinstance(v, str):
            return v.rstrip("/")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
