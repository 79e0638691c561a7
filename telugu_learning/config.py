from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Telugu Reading Games"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./telugu_learning.db"

    # Letter match
    OPTION_COUNT: int = 4
    # Off by default: two letters may share a transliteration (e.g. "sha")
    DEDUPE_OPTIONS_BY_TRANSLITERATION: bool = False
    # Unfinished games idle this long are dropped from memory
    SESSION_IDLE_MINUTES: int = 30

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
