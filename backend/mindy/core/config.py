"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Mindy Routine Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://mindy@localhost:5432/mindy"
    # Header carrying the identity provider's verified caller id.
    caller_id_header: str = "X-Caller-Id"
    routine_window_days: int = 60
    default_routine_duration: int = 1
    max_routine_duration: int = 365
    mood_window_days: int = 14
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "mindy"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
