"""Engine configuration with validation."""
from typing import Literal
from functools import lru_cache
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Cascade engine settings, read from the environment or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RAG_CASCADE_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "OKR RAG Cascade Engine"
    APP_VERSION: str = "1.0.0"
    APP_ENV: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    # Cascade scheduling
    CASCADE_MAX_CONCURRENCY: int = Field(default=8, ge=1, le=64)

    # Precision of reported node values (percentages)
    VALUE_DECIMAL_PLACES: int = Field(default=2, ge=0, le=6)

    # Fall back to Green/Amber/Red = 1.0/0.5/0.0 when an indicator has no bands
    USE_DEFAULT_BANDS: bool = True

    @field_validator("APP_ENV", mode="before")
    @classmethod
    def normalize_env(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @model_validator(mode="after")
    def validate_production_settings(self):
        if self.APP_ENV == "production" and self.DEBUG:
            raise ValueError("DEBUG must be False in production")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
