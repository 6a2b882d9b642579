from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    DATABASE_URL: str = "sqlite:///./app.db"
    SQL_ECHO: bool = False

    # Used when a list request does not name its own sort
    DEFAULT_SORT_BY: str = "createdAt"
    DEFAULT_ORDER: Literal["asc", "desc"] = "desc"


@lru_cache
def get_settings() -> Settings:
    return Settings()
