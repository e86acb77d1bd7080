"""Configuration management for the sales report service."""

import logging
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class StoreConfig(BaseSettings):
    """Configuration for the record store and API server."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    database_url: str = Field(
        default="sqlite:///./posreport.db",
        description="SQLAlchemy database URL for the record store",
    )

    storage_backend: Literal["sql", "memory"] = Field(
        default="sql",
        description="Record store implementation: sql or memory",
    )

    drop_tables_on_start: bool = Field(
        default=False,
        description="Drop products/sales tables before creating them",
    )

    seed_catalog: bool = Field(
        default=True,
        description="Insert the sample product catalog at startup",
    )

    api_host: str = Field(
        default="0.0.0.0",
        description="API host address",
    )

    api_port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="API port",
    )

    allowed_origins: str = Field(
        default="*",
        description="Comma-separated CORS origins (* allows any host)",
    )

    sales_rate_limit: str = Field(
        default="60/minute",
        description="Rate limit applied to sale creation",
    )

    log_level: str = Field(
        default="INFO",
        description="Root log level",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.strip().upper()

    def get_allowed_origins(self) -> list[str]:
        """Parse allowed origins from comma-separated string."""
        origins = [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
        if not origins:
            logger.warning(
                "ALLOWED_ORIGINS produced empty list (value: '%s'). Allowing any host.",
                self.allowed_origins,
            )
            return ["*"]
        return origins

    def validate_config(self) -> None:
        """Validate configuration at startup. Raises ValueError if invalid."""
        errors = []

        if self.storage_backend == "sql" and not self.database_url:
            errors.append("DATABASE_URL required when STORAGE_BACKEND is sql")

        if self.log_level not in _LOG_LEVELS:
            errors.append(f"LOG_LEVEL must be one of {', '.join(sorted(_LOG_LEVELS))}")

        if "/" not in self.sales_rate_limit:
            errors.append("SALES_RATE_LIMIT must look like '<count>/<period>'")

        if errors:
            raise ValueError(
                "Configuration validation failed:\n"
                + "\n".join(f"  - {e}" for e in errors)
            )


_config_instance = None


def get_config() -> StoreConfig:
    """Get or create global configuration instance."""
    global _config_instance
    if _config_instance is None:
        _config_instance = StoreConfig()
        _config_instance.validate_config()
        logger.info("Configuration validated successfully")
    return _config_instance


def get_config_unvalidated() -> StoreConfig:
    """Get or create global configuration instance without validation."""
    global _config_instance
    if _config_instance is None:
        _config_instance = StoreConfig()
    return _config_instance


def reload_config() -> StoreConfig:
    """Reload configuration (useful for testing)."""
    global _config_instance
    _config_instance = StoreConfig()
    return _config_instance
