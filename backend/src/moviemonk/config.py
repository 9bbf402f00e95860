"""Configuration management for MovieMonk.

Uses pydantic-settings to load configuration from environment variables.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_env_file() -> Path | None:
    """Search for .env file in common locations."""
    # Check current working directory first
    cwd = Path.cwd()
    if (cwd / ".env").exists():
        return cwd / ".env"

    # Check parent directories (up to 5 levels) for project root .env
    check_dir = cwd
    for _ in range(5):
        if (check_dir / ".env").exists():
            return check_dir / ".env"
        parent = check_dir.parent
        if parent == check_dir:
            break
        check_dir = parent

    # backend/src/moviemonk/config.py -> project root
    project_root = Path(__file__).resolve().parent.parent.parent.parent
    if (project_root / ".env").exists():
        return project_root / ".env"

    return None


_env_file = _find_env_file()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_env_file) if _env_file else ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================
    # Environment
    # =========================
    environment: Literal["development", "staging", "production"] = "development"

    # =========================
    # API Settings
    # =========================
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # =========================
    # Redis
    # =========================
    redis_url: str = ""

    # =========================
    # LLM Providers
    # =========================
    groq_api_key: str = Field(default="", repr=False)
    groq_base_url: str = "https://api.groq.com/openai/v1"
    groq_simple_model: str = "llama-3.1-8b-instant"
    groq_complex_model: str = "llama-3.3-70b-versatile"

    mistral_api_key: str = Field(default="", repr=False)
    mistral_base_url: str = "https://api.mistral.ai/v1"
    mistral_simple_model: str = "open-mixtral-8x7b"
    mistral_complex_model: str = "open-mixtral-8x22b"

    openrouter_api_key: str = Field(default="", repr=False)
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_simple_model: str = "meta-llama/llama-3.1-8b-instruct"
    openrouter_complex_model: str = "meta-llama/llama-3.1-70b-instruct"

    perplexity_api_key: str = Field(default="", repr=False)
    perplexity_base_url: str = "https://api.perplexity.ai"
    perplexity_simple_model: str = "sonar"
    perplexity_complex_model: str = "sonar-pro"

    # =========================
    # TMDB
    # =========================
    tmdb_api_key: str = Field(default="", repr=False)
    tmdb_read_token: str = Field(default="", repr=False)
    tmdb_base_url: str = "https://api.themoviedb.org/3"
    tmdb_timeout_seconds: float = 8.0

    # =========================
    # Pipeline
    # =========================
    total_budget_ms: int = Field(default=10_000, ge=0)
    min_floor_ms: int = Field(default=400, ge=0)
    cache_ttl_seconds: int = Field(default=6 * 60 * 60, ge=1)
    provider_error_cooldown_seconds: float = 30.0
    default_provider_order: str = "groq,mistral,openrouter,perplexity"
    search_result_limit: int = Field(default=6, ge=1, le=20)
    search_min_confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    # =========================
    # Logging
    # =========================
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "text"

    def get_provider_credentials(self, provider: str) -> tuple[str, str] | None:
        """Get the (api_key, base_url) pair for a provider.

        Args:
            provider: Provider identifier (e.g., 'groq', 'mistral')

        Returns:
            Tuple of (api_key, base_url) if an API key is configured, None otherwise
        """
        credentials_map = {
            "groq": (self.groq_api_key, self.groq_base_url),
            "mistral": (self.mistral_api_key, self.mistral_base_url),
            "openrouter": (self.openrouter_api_key, self.openrouter_base_url),
            "perplexity": (self.perplexity_api_key, self.perplexity_base_url),
        }
        creds = credentials_map.get(provider.lower())
        if creds and creds[0]:
            return creds
        return None

    def get_provider_models(self, provider: str) -> tuple[str, str]:
        """Get the (simple_model, complex_model) pair for a provider."""
        models_map = {
            "groq": (self.groq_simple_model, self.groq_complex_model),
            "mistral": (self.mistral_simple_model, self.mistral_complex_model),
            "openrouter": (self.openrouter_simple_model, self.openrouter_complex_model),
            "perplexity": (self.perplexity_simple_model, self.perplexity_complex_model),
        }
        return models_map[provider.lower()]

    def get_provider_base_url(self, provider: str) -> str:
        """Get the chat-completions base URL for a provider."""
        return getattr(self, f"{provider.lower()}_base_url")

    @property
    def provider_order_list(self) -> list[str]:
        """Parse the default provider order as a list."""
        return [p.strip().lower() for p in self.default_provider_order.split(",") if p.strip()]

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
