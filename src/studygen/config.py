"""
Configuration management using Pydantic Settings.

All configuration is loaded from environment variables with sensible defaults.
Use a .env file for local development.

Environment Variables:
    GOOGLE_API_KEY: Primary API key for the generation service
    GOOGLE_API_KEYS: Additional comma-separated keys for the credential pool
    GENERATION_ENDPOINT_URL: OpenAI-compatible chat completions endpoint
    CHUNK_SIZE: Character size of retrieval windows
    CHUNK_OVERLAP: Overlap between consecutive windows
    CACHE_TTL_SECONDS: Lifetime of cached artifacts
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # API Keys
    # ==========================================================================
    google_api_key: Optional[SecretStr] = Field(
        default=None,
        description="Primary API key for the generation service",
    )
    google_api_keys: Optional[SecretStr] = Field(
        default=None,
        description="Backup API keys, comma-separated, tried in order after the primary",
    )

    # ==========================================================================
    # Generation Service
    # ==========================================================================
    generation_endpoint_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/openai/chat/completions",
        description="OpenAI-compatible chat completions endpoint",
    )
    generation_model: str = Field(
        default="gemini-2.5-flash",
        description="Model name sent with every generation request",
    )
    generation_temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Default sampling temperature",
    )
    generation_max_tokens: int = Field(
        default=8192,
        ge=1,
        le=65536,
        description="Maximum tokens for a generated artifact",
    )
    request_timeout: float = Field(
        default=120.0,
        gt=0.0,
        description="Timeout in seconds for a single generation request",
    )

    # ==========================================================================
    # Retrieval Configuration
    # ==========================================================================
    chunk_size: int = Field(
        default=1000,
        ge=50,
        le=20000,
        description="Window size in characters for document chunks",
    )
    chunk_overlap: int = Field(
        default=200,
        ge=0,
        le=10000,
        description="Overlap between consecutive chunks",
    )
    retrieval_top_k: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Number of chunks to retrieve for chat context",
    )

    # ==========================================================================
    # Result Cache
    # ==========================================================================
    cache_max_entries: int = Field(
        default=5,
        ge=1,
        le=10000,
        description="Maximum number of cached artifacts before eviction",
    )
    cache_ttl_seconds: float = Field(
        default=24 * 60 * 60,
        gt=0.0,
        description="Age after which a cached artifact is treated as absent",
    )

    # ==========================================================================
    # Retry Policy
    # ==========================================================================
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempt ceiling for a single generation call",
    )
    retry_base_delay: float = Field(
        default=1.0,
        ge=0.0,
        le=60.0,
        description="Base delay in seconds for exponential backoff",
    )

    # ==========================================================================
    # Document Limits
    # ==========================================================================
    max_document_size: int = Field(
        default=500_000,
        ge=1,
        description="Documents longer than this are rejected",
    )
    min_document_size: int = Field(
        default=100,
        ge=1,
        description="Documents shorter than this are rejected as empty",
    )

    # ==========================================================================
    # Observability Configuration
    # ==========================================================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # ==========================================================================
    # Validators
    # ==========================================================================
    @field_validator("chunk_overlap")
    @classmethod
    def validate_chunk_overlap(cls, v: int, info) -> int:
        """Ensure overlap is less than chunk size."""
        chunk_size = info.data.get("chunk_size", 1000)
        if v >= chunk_size:
            raise ValueError(f"chunk_overlap ({v}) must be less than chunk_size ({chunk_size})")
        return v

    @field_validator("generation_endpoint_url")
    @classmethod
    def validate_endpoint_url(cls, v: str) -> str:
        """Require an http(s) endpoint."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"generation_endpoint_url must be an http(s) URL, got {v!r}")
        return v

    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @property
    def api_key_values(self) -> list[str]:
        """Get all configured API keys in pool order (use sparingly)."""
        raw: list[str] = []
        if self.google_api_key:
            raw.append(self.google_api_key.get_secret_value())
        if self.google_api_keys:
            raw.extend(self.google_api_keys.get_secret_value().split(","))

        keys: list[str] = []
        for key in raw:
            key = key.strip()
            if key and key not in keys:
                keys.append(key)
        return keys


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are only loaded once.
    Call `get_settings.cache_clear()` to reload settings.

    Returns:
        Settings: Application settings instance
    """
    return Settings()


# Convenience alias
settings = get_settings()
