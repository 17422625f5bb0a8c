from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CHATSYNC_",
        extra="ignore",
    )

    debug: bool = False
    app_name: str = "chatsync"


@lru_cache
def get_settings() -> Settings:
    return Settings()
