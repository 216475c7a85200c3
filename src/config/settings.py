"""Application settings."""

from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

GEMINI_OPENAI_COMPAT_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class Settings(BaseSettings):
    """Environment-driven configuration."""

    default_provider: str = Field(default="gemini")
    # providers
    openai_api_key: Optional[str] = Field(default=None)
    openai_base_url: Optional[str] = Field(default=None)
    openai_model: Optional[str] = Field(default=None)
    gemini_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    )
    gemini_model: str = Field(default="gemini-2.5-flash-lite")
    gemini_base_url: str = Field(default=GEMINI_OPENAI_COMPAT_URL)
    request_timeout: Optional[float] = Field(default=None, gt=0)
    # translation
    max_input_chars: int = Field(default=100, ge=1)
    max_output_tokens: int = Field(default=75, ge=1, le=4096)
    translation_temperature: float = Field(default=0.9, ge=0, le=2)
    # rate limiting
    rate_limit_max_requests: int = Field(default=3, ge=1)
    rate_limit_window_ms: int = Field(default=60_000, ge=1)
    rate_limit_max_identifiers: int = Field(default=10_000, ge=1)
    cors_allow_origins: List[str] = Field(default=["*"])
    log_level: str = Field(default="INFO")

    class Config:
        """Pydantic config."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        populate_by_name = True
        extra = "ignore"

    @field_validator("default_provider")
    @classmethod
    def _normalize_provider(cls, value: str) -> str:
        return (value or "gemini").strip().lower()

    @field_validator("openai_api_key", "gemini_api_key", "openai_model")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()


settings = Settings()
