from functools import lru_cache
from pathlib import Path

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from marketplace.core.errors import ConfigError


class Settings(BaseSettings):
    DATABASE_URL: str
    SUPABASE_URL: str
    SUPABASE_ANON_KEY: str
    SUPABASE_SERVICE_ROLE_KEY: str
    SUPABASE_JWT_SECRET: str

    REDIS_URL: str = "redis://localhost:6379/0"
    SITE_URL: str = "http://localhost:3000"
    CORS_ORIGINS: str = "http://localhost:3000"
    SENTRY_DSN: str | None = None
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10

    ACCESS_TOKEN_COOKIE_NAME: str = "sb-access-token"
    REFRESH_TOKEN_COOKIE_NAME: str = "sb-refresh-token"
    ACCESS_TOKEN_MAX_AGE: int = 60 * 60
    REFRESH_TOKEN_MAX_AGE: int = 30 * 24 * 60 * 60
    COOKIE_DOMAIN: str | None = None
    COOKIE_SECURE: bool = False
    COOKIE_SAMESITE: str = "lax"
    JWT_AUDIENCE: str = "authenticated"

    CATEGORIES_CACHE_TTL: int = 300
    CATEGORIES_STALE_TTL: int = 600
    CATEGORY_STATS_CACHE_TTL: int = 60

    REVIEW_ELIGIBILITY_DAYS: int = 14
    LEGACY_GRACE_DAYS: int = 30

    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PUBLIC_MAX: int = 30
    RATE_LIMIT_PUBLIC_WINDOW: int = 60

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[2] / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


def load_settings() -> Settings:
    """
    Build settings from the environment, failing with every missing key at once.
    """
    try:
        return Settings()
    except ValidationError as exc:
        missing = sorted(
            str(err["loc"][0]) for err in exc.errors() if err["type"] == "missing" and err["loc"]
        )
        if missing:
            raise ConfigError(
                f"Missing required configuration: {', '.join(missing)}",
                missing=missing,
            ) from exc
        raise ConfigError(f"Invalid configuration: {exc}") from exc


@lru_cache
def get_settings() -> Settings:
    return load_settings()
