"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_key: str
    supabase_projects_table: str = "projects"
    supabase_media_bucket: str = "project-media"
    openai_api_key: str | None = None
    openai_model: str = "gpt-5-mini"
    local_state_path: str = ".progress_portal_state.json"
    max_upload_bytes: int = 200 * 1024 * 1024
    upload_settle_seconds: float = 0.5
    upload_clear_seconds: float = 3.0
    report_max_retries: int = 3
    report_base_delay_seconds: float = 1.0
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
