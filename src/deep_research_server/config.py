from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the deep research server."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    google_api_key: str | None = Field(default=None, alias="GOOGLE_API_KEY")
    gemini_model: str = Field(default="gemini-3-pro-preview", alias="GEMINI_MODEL")
    model_temperature: float = Field(default=0.0, alias="MODEL_TEMPERATURE")

    # Optional override for the composed research prompt
    system_prompt: str | None = Field(default=None, alias="SYSTEM_PROMPT")

    checkpointer_backend: Literal["memory", "postgres"] = Field(
        default="memory", alias="CHECKPOINTER_BACKEND"
    )
    database_url: str | None = Field(default=None, alias="DATABASE_URL")

    # Durable file tier behind the memories prefix
    durable_backend: Literal["store", "gcs"] = Field(default="store", alias="DURABLE_BACKEND")
    google_cloud_storage_bucket: str | None = Field(default=None, alias="GOOGLE_CLOUD_STORAGE_BUCKET")
    gcs_memories_prefix: str = Field(default="deep-research/memories", alias="GCS_MEMORIES_PREFIX")
    memories_prefix: str = Field(default="/memories/", alias="MEMORIES_PREFIX")

    # Run defaults
    default_recursion_limit: int = Field(default=50, alias="DEFAULT_RECURSION_LIMIT")
    default_stream_modes: str = Field(
        default="values,messages,updates,debug", alias="DEFAULT_STREAM_MODES"
    )

    # When false the state endpoint only echoes the merged snapshot
    durable_state_merge: bool = Field(default=False, alias="DURABLE_STATE_MERGE")

    # Web search / scrape provider
    websearchapi_key: str | None = Field(default=None, alias="WEBSEARCHAPI_KEY")
    websearchapi_base_url: str = Field(
        default="https://api.websearchapi.ai", alias="WEBSEARCHAPI_BASE_URL"
    )
    websearch_timeout: float = Field(default=60.0, alias="WEBSEARCH_TIMEOUT")

    # Neural search provider
    exa_api_key: str | None = Field(default=None, alias="EXA_API_KEY")

    # FastAPI configuration
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8080, alias="APP_PORT")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @property
    def stream_mode_list(self) -> list[str]:
        """Default stream channels, in request order."""
        return [mode.strip() for mode in self.default_stream_modes.split(",") if mode.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return memoized settings so multiple imports share a single instance."""

    return Settings()  # type: ignore[arg-type]
