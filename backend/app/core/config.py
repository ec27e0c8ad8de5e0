"""Application configuration using Pydantic Settings."""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.logging import LogLevel


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: LogLevel = Field(default="INFO")

    # Rate rules
    preferred_exchange: str = Field(default="kraken")
    rate_rules_script: str = Field(default="")
    global_multiplier: Decimal = Field(default=Decimal("1"), gt=0)

    # Rate fetching
    rate_fetch_timeout_seconds: float = Field(default=10.0, gt=0)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def default_rate_rules_script(self) -> str:
        """Rule script used when no script is configured.

        Every pair is priced from the preferred exchange.
        """
        return f"X_X = {self.preferred_exchange.lower()}(X_X);"

    @property
    def effective_rate_rules_script(self) -> str:
        return self.rate_rules_script.strip() or self.default_rate_rules_script


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
