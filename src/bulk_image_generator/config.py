"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str | None = None
    supabase_service_key: str | None = None
    supabase_table: str = "kv_store"
    access_token: str | None = None
    gemini_model: str = "imagen-4.0-generate-001"
    openai_model: str = "dall-e-3"
    openai_image_size: str = "1024x1024"
    image_aspect_ratio: str = "1:1"
    cooldown_seconds: float = 2.0
    credentials_storage_key: str = "bulk-image-generator-api-keys"
    history_storage_key: str = "bulk-image-generator-history"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def uses_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)
