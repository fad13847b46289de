from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # App
    debug: bool = False
    cors_origins: list[str] = ["*"]

    ENVIRONMENT: str = "Production"

    # External RSVP API
    api_url: str = "http://localhost:5000/api"

    # Client-side cache
    cache_ttl_seconds: int = 5 * 60  # 5 minutes
    state_db_url: str = "sqlite+aiosqlite:///./rsvp_portal_state.db"
    LOG_DB: bool = False

    SENTRY_DSN: str = ""
    SENTRY_TRACES_SAMPLE_RATE: float = 0.0
    SENTRY_PROFILES_SAMPLE_RATE: float = 0.0


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
