"""
Centralized configuration management using Pydantic Settings.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import Optional, List, Union
from pathlib import Path
import os


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application
    app_name: str = "Article Illustrator"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = Field(default="development", validation_alias="APP_ENV")
    app_url: str = Field(default="http://localhost:3000", validation_alias="NEXT_PUBLIC_APP_URL")
    app_title: str = "Article Illustration Generator"

    # CORS
    cors_origins: Union[str, List[str]] = Field(
        default_factory=lambda: ["http://localhost:3000"]
    )

    # Text generation (prompt synthesis)
    openrouter_api_key: Optional[str] = None
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_model: str = "mistralai/devstral-2512:free"
    prompt_temperature: float = 0.7
    prompt_max_tokens: int = 200

    # Hugging Face (SDK + both HTTP inference generations)
    huggingface_api_key: Optional[str] = None
    huggingface_model: str = "stabilityai/stable-diffusion-xl-base-1.0"
    huggingface_alternative_model: str = "runwayml/stable-diffusion-v1-5"
    huggingface_provider: Optional[str] = "nscale"
    huggingface_steps: int = 20
    huggingface_router_url: str = "https://router.huggingface.co/models"
    huggingface_inference_url: str = "https://api-inference.huggingface.co/models"

    # Replicate (asynchronous prediction jobs)
    replicate_api_token: Optional[str] = None
    replicate_base_url: str = "https://api.replicate.com/v1"
    replicate_model_version: str = "39ed52f2a78e934b3ba6e2a89f5b1c712de7dfea535525255b1aa35c5565e08b"
    replicate_poll_interval: float = 2.0
    replicate_max_attempts: int = 60

    # Network
    request_timeout: int = 120  # seconds per provider HTTP call

    # Client-profile persistence
    storage_path: str = Field(default="data/client_store.json", validation_alias="STORAGE_PATH")
    storage_quota_bytes: int = 5 * 1024 * 1024  # comparable to a browser profile store
    daily_image_limit: int = 3
    cache_max_entry_bytes: int = 2 * 1024 * 1024
    history_max_items: int = 20
    history_text_char_limit: int = 5000
    history_max_bytes: int = 256 * 1024
    analytics_max_events: int = 1000

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    prompt_log_dir: Optional[str] = Field(default=None, validation_alias="PROMPT_LOG_DIR")

    @field_validator("cors_origins", mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            if not v:  # Handle empty string
                return ["http://localhost:3000"]
            return [origin.strip() for origin in v.split(",")]
        elif v is None:
            return ["http://localhost:3000"]
        return v

    @field_validator("storage_path")
    @classmethod
    def resolve_storage_path(cls, v):
        path = Path(v)
        if not path.is_absolute():
            path = Path(os.getcwd()) / path
        return str(path)

    @field_validator("openrouter_api_key", "huggingface_api_key", "replicate_api_token", mode='before')
    @classmethod
    def blank_key_is_missing(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def has_image_credentials(self) -> bool:
        return bool(self.huggingface_api_key or self.replicate_api_token)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the settings singleton instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment (useful for testing)."""
    global _settings
    _settings = Settings()
    return _settings
