"""Marketplace configuration, read from the environment and `.env`"""
from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Process-level configuration.

    The commission, maintenance and registration fields are only the
    defaults seeded into the platform settings record; once seeded,
    administrators change them through the settings API.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    environment: str = "development"
    debug: bool = True

    # "memory" keeps records in-process (single worker, tests, demos)
    record_store: Literal["mongo", "memory"] = "mongo"
    # Multi-record units run in transactions, which need a replica set
    mongo_uri: str = "mongodb://localhost:27017/?replicaSet=rs0"
    mongo_db: str = "marketplace_dev"

    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "dropship-marketplace"
    jwt_ttl_minutes: int = Field(default=60, gt=0)

    logs_path: str = "./logs"
    log_level: str = "INFO"

    # Comma separated, or "*"
    cors_origins: str = "*"

    default_commission_rate: float = Field(default=5.0, ge=0, le=100)
    maintenance_mode: bool = False
    supplier_registration_key: str = ""
    settings_update_attempts: int = Field(default=3, ge=1)

    api_base_url: str = "http://127.0.0.1:8000/api/v1"
    client_timeout_seconds: float = 15.0
    client_max_attempts: int = Field(default=3, ge=1)

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def uses_memory_store(self) -> bool:
        return self.record_store == "memory"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
