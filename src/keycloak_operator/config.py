"""Operator configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Operator settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="KEYCLOAK_OPERATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    service_name: str = "keycloak-operator"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = False

    # Subsystem part of the capability keys for monitoring kinds
    controller_name: str = "keycloak"

    # None keeps discovered capabilities for the lifetime of the process
    capability_ttl_seconds: int | None = None


settings = Settings()


@lru_cache
def get_settings() -> Settings:
    """Return the module-level settings singleton."""
    return settings
