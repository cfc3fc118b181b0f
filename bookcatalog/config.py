import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_FILE = Path(__file__).resolve().parents[1] / ".env"


def normalize_database_url(url: str) -> str:
    """Force psycopg v3 driver so SQLAlchemy does not try psycopg2."""
    if url.startswith("postgresql://"):
        return "postgresql+psycopg://" + url[len("postgresql://") :]
    if url.startswith("postgres://"):
        return "postgresql+psycopg://" + url[len("postgres://") :]
    if url.startswith("postgresql+psycopg2://"):
        return "postgresql+psycopg://" + url[len("postgresql+psycopg2://") :]
    return url


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=_ENV_FILE, extra="ignore")

    DATABASE_URL: str | None = None
    DATABASE_USER: str = "app_user"
    DATABASE_PW: str = "app_pw"
    DATABASE_NAME: str = "book_catalog"
    DATABASE_HOST: str = "localhost"
    DATABASE_PORT: int = Field(default=5432, ge=1, le=65535)
    SQL_ECHO: bool = False
    LOG_LEVEL: str = "INFO"

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, value: Any) -> str:
        level = str(value).strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown LOG_LEVEL: {value!r}")
        return level

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return normalize_database_url(self.DATABASE_URL)
        return (
            f"postgresql+psycopg://{self.DATABASE_USER}:{self.DATABASE_PW}"
            f"@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


class _LazySettings:
    def __getattr__(self, item: str) -> Any:
        return getattr(get_settings(), item)


settings = cast(Settings, _LazySettings())
