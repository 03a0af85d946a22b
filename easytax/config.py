"""
config.py — EasyTax application settings.

Usage:
    from easytax.config import settings
    print(settings.redis_url)

Never use FastAPI Depends() for settings — import directly as a module-level singleton.
"""
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore any extra env vars
    )

    # --- Language model (advisory layer) ---
    # Empty key → advisory layer answers from the static fallback tables only
    mistral_api_key: str = ""
    mistral_model: str = "mistral-small-latest"
    mistral_temperature: float = 0.3
    mistral_max_tokens: int = 1024

    # --- Key-value persistence ---
    # "redis" in deployments, "memory" for local runs and tests
    store_backend: Literal["redis", "memory"] = "redis"
    redis_url: str = "redis://localhost:6379"

    # --- CORS ---
    # Comma-separated list of allowed frontend origins
    cors_origins: str = "http://localhost:8081,http://localhost:19006"

    # --- Application ---
    debug: bool = True
    app_version: str = "0.1.0"

    # --- Tax year ---
    # Used for ITR due dates and prompt framing when the filer omits it
    assessment_year: str = "2025-26"

    @property
    def cors_origins_list(self) -> List[str]:
        """Split comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def financial_year(self) -> str:
        """FY that precedes the configured AY, e.g. AY 2025-26 → FY 2024-25."""
        start = int(self.assessment_year.split("-")[0])
        return f"{start - 1}-{str(start)[2:]}"


# Module-level singleton: import this throughout the codebase
settings = Settings()
