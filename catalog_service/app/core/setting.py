"""
Catalog Service configuration, read from the environment and an optional
``.env`` file next to the service.
"""

from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CATALOG_SERVICE_DIR = Path(__file__).parent.parent.parent
ENV_FILE = CATALOG_SERVICE_DIR / ".env"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class CatalogSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str
    APP_VERSION: str
    DEBUG: bool
    ENVIRONMENT: str
    LOG_LEVEL: str = "INFO"
    SERVICE_NAME: str = "catalog-service"

    # Database
    CATALOG_DATABASE_URL: str

    # Kafka
    KAFKA_BOOTSTRAP_SERVERS: str
    EVENTS_ENABLED: bool = True

    # CORS
    CORS_ORIGINS: List[str]
    CORS_CREDENTIALS: bool
    CORS_METHODS: List[str]
    CORS_HEADERS: List[str]

    # Category path cache
    PATH_CACHE_MAX_SIZE: int = Field(default=50000, gt=0)

    # Tree maintenance jobs (fix tree + rebuild paths)
    TREE_MAINTENANCE_MAX_RETRIES: int = Field(default=3, ge=1)
    TREE_MAINTENANCE_RETRY_DELAY: float = Field(default=1.0, ge=0)

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return level


_settings_instance = None


def get_settings() -> CatalogSettings:
    """Get settings singleton instance"""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = CatalogSettings()
    return _settings_instance
