from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TenantSettings(BaseModel):
    """Per-tenant ("baseEntity") storage options."""

    dbname: str = "scim-entitlements"
    # False keeps the tenant in the embedded in-memory engine.
    persistence: bool = False
    # None means: seed test data only when not persistent.
    seed_test_data: bool | None = None

    @property
    def should_seed(self) -> bool:
        if self.seed_test_data is None:
            return not self.persistence
        return self.seed_test_data


def _default_tenants() -> dict[str, TenantSettings]:
    return {"undefined": TenantSettings()}


class Settings(BaseSettings):
    """
    Central configuration.

    - Values loaded from environment / `.env`
    - TENANTS given as JSON, e.g. {"undefined": {"dbname": "scim.db", "persistence": false}}
    """

    # ----------------------------
    # Service
    # ----------------------------
    SERVICE_NAME: str = "scim-store"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # ----------------------------
    # Mongo (persistent tenants only)
    # ----------------------------
    mongo_uri: str = "mongodb://localhost:27017"

    # ----------------------------
    # Tenants
    # ----------------------------
    tenants: dict[str, TenantSettings] = Field(default_factory=_default_tenants)

    # ----------------------------
    # Paging
    # ----------------------------
    default_count: int = 100
    max_count: int | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
