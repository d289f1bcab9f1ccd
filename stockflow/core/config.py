from __future__ import annotations

import os
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseAppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "StockFlow"
    ENV: str = "dev"
    DATABASE_URL: str | None = None
    JWT_SECRET: str = "change_me"

    CORS_ALLOW_ORIGINS: list[str] = ["*"]
    CORS_ALLOW_METHODS: list[str] = ["*"]
    CORS_ALLOW_HEADERS: list[str] = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "plain"
    SENTRY_DSN: str | None = None
    # Empty value keeps audit events on the logger only
    AUDIT_LOG_FILE: str | None = "storage/audit.log"

    # Inventory behaviour
    STOCK_MOVEMENT_MAX_ATTEMPTS: int = 3  # Optimistic retries before surfacing contention
    DEFAULT_LOW_STOCK_THRESHOLD: int = 0

    @field_validator("STOCK_MOVEMENT_MAX_ATTEMPTS")
    @classmethod
    def attempts_at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("STOCK_MOVEMENT_MAX_ATTEMPTS must be at least 1")
        return v

    @field_validator("DEFAULT_LOW_STOCK_THRESHOLD")
    @classmethod
    def threshold_not_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("DEFAULT_LOW_STOCK_THRESHOLD cannot be negative")
        return v

    @model_validator(mode="after")
    def _validate_required_fields(self) -> BaseAppSettings:
        # Heroku style URLs
        if self.DATABASE_URL and self.DATABASE_URL.startswith("postgres://"):
            self.DATABASE_URL = self.DATABASE_URL.replace("postgres://", "postgresql://", 1)

        if self.ENV.lower() == "prod":
            if not self.DATABASE_URL:
                raise ValueError("Missing required production settings: DATABASE_URL")
            if self.JWT_SECRET == "change_me":
                raise ValueError("Insecure default secrets in production: JWT_SECRET uses default placeholder")
        return self


class DevSettings(BaseAppSettings):
    ENV: str = "dev"
    DATABASE_URL: str = "sqlite:///./stockflow.db"


class TestSettings(BaseAppSettings):
    ENV: str = "test"
    DATABASE_URL: str | None = None
    AUDIT_LOG_FILE: str | None = None


class ProdSettings(BaseAppSettings):
    ENV: str = "prod"
    CORS_ALLOW_ORIGINS: list[str] = []
    LOG_FORMAT: str = "json"


_ENV_TO_SETTINGS: dict[str, type[BaseAppSettings]] = {
    "dev": DevSettings,
    "development": DevSettings,
    "test": TestSettings,
    "testing": TestSettings,
    "prod": ProdSettings,
    "production": ProdSettings,
}


@lru_cache
def get_settings() -> BaseAppSettings:
    env_name = os.getenv("APP_ENV") or os.getenv("ENV") or "dev"
    env = env_name.lower()
    settings_cls = _ENV_TO_SETTINGS.get(env, DevSettings)
    return settings_cls()


settings = get_settings()
