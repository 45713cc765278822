"""Application configuration management using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Required settings will raise validation errors if not provided.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="typequiz-backend", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins",
    )

    # Supabase
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_secret_key: str = Field(..., description="Supabase key used for table access")
    heartbeat_on_startup: bool = Field(default=True, description="Upsert the system row once at startup")

    # OpenAI
    openai_api_key: str = Field(..., description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o-mini", description="OpenAI model to use")
    mock_openai: bool | None = Field(default=None, description="Mock OpenAI responses for local testing. Auto-enabled outside production.")

    # Chat history
    max_history_messages: int = Field(default=3000, description="Max chat rows loaded when restoring a conversation")
    rating_lookup_window: int = Field(default=5, description="Recent rows scanned when a rated message has no id yet")

    # Respondent session
    session_cookie_name: str = Field(default="typequiz_session", description="Session cookie name")
    session_cookie_max_age: int = Field(default=2592000, description="Session cookie max age in seconds (30 days)")
    session_cookie_secure: bool = Field(default=True, description="Use secure cookies (HTTPS only)")
    session_ttl_seconds: int = Field(default=86400, description="Idle seconds before an in-memory session is dropped")
    local_cache_dir: str | None = Field(default=None, description="Directory for per-session JSON caches (memory only when unset)")

    # Quiz flow timings (seconds)
    confirm_delay_seconds: float = Field(default=0.4, ge=0, description="Highlight after an answer is picked")
    advance_delay_seconds: float = Field(default=0.3, ge=0, description="Transition between questions")
    completion_pause_seconds: float = Field(default=0.6, ge=0, description="Pause on the full progress bar")
    finalize_transition_seconds: float = Field(default=1.2, ge=0, description="Transition into the result view")
    reset_cooldown_seconds: float = Field(default=30, ge=0, description="Lock on retaking the test after a result")

    @model_validator(mode="after")
    def set_mock_openai_default(self) -> "Settings":
        """Default mock_openai to on everywhere except production when MOCK_OPENAI is unset."""
        if self.mock_openai is None:
            self.mock_openai = self.app_env != "production"

        return self

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached using lru_cache for performance.
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
