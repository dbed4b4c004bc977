from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict  # type: ignore[import-not-found]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = Field(default="Production Tracker", alias="APP_NAME")
    app_env: str = Field(default="dev", alias="APP_ENV")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=9444, alias="PORT")
    db_url: str = Field(default="sqlite:///./data/production.db", alias="DB_URL")
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    admin_password: str = Field(default="Admin@123", alias="ADMIN_PASSWORD")
    allow_registration: bool = Field(default=True, alias="ALLOW_REGISTRATION")
    timezone: str = Field(default="America/Chicago", alias="TIMEZONE")
    edit_window_days: int = Field(default=30, alias="EDIT_WINDOW_DAYS")
    bucket_width: int = Field(default=100, alias="BUCKET_WIDTH")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: str | None = Field(default="logs", alias="LOG_DIR")

    @field_validator("edit_window_days", "bucket_width")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value

    @field_validator("log_dir", mode="before")
    @classmethod
    def _blank_is_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = str(value).strip()
        return value or None


@lru_cache()
def get_settings() -> Settings:
    return Settings()
