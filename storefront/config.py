"""Application configuration via Pydantic Settings v2."""

from functools import lru_cache

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process environment for the resource store service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Required ===
    supabase_url: str
    supabase_key: SecretStr
    upstash_redis_url: str
    upstash_redis_token: SecretStr
    internal_api_token: SecretStr
    billing_api_url: str

    # === Optional ===
    billing_api_token: SecretStr = SecretStr("")
    sentry_dsn: str = ""
    health_check_token: SecretStr = SecretStr("")

    # === Defaults ===
    log_level: str = "INFO"
    settings_cache_ttl: int = 60
    billing_timeout_seconds: float = 10.0

    @field_validator("supabase_url")
    @classmethod
    def _supabase_url_must_be_https(cls, v: str) -> str:
        if not v.startswith("https://"):
            msg = "SUPABASE_URL must start with https://"
            raise ValueError(msg)
        return v

    @field_validator("billing_api_url")
    @classmethod
    def _billing_url_must_be_http(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            msg = "BILLING_API_URL must be an http(s) URL"
            raise ValueError(msg)
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _log_level_upper(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Unknown LOG_LEVEL: {v}"
            raise ValueError(msg)
        return level


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton Settings instance (cached after first call)."""
    return Settings()  # type: ignore[call-arg]
