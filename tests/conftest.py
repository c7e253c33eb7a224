from __future__ import annotations

import itertools

import pytest
import pytest_asyncio

from scim_store.configs.settings import Settings, TenantSettings
from scim_store.repositories.tenant_registry import TenantRegistry
from scim_store.services.query_service import QueryService
from scim_store.services.resource_service import ResourceService

SEEDED = "undefined"
EMPTY = "empty"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        tenants={
            SEEDED: TenantSettings(dbname="seeded.db"),
            EMPTY: TenantSettings(dbname="empty.db", seed_test_data=False),
        }
    )


@pytest_asyncio.fixture
async def registry(settings: Settings) -> TenantRegistry:
    return await TenantRegistry.from_settings(settings)


@pytest.fixture
def queries(registry: TenantRegistry, settings: Settings) -> QueryService:
    return QueryService(registry, settings)


@pytest.fixture
def clock():
    ticks = itertools.count(1)
    return lambda: f"2024-01-01T00:00:{next(ticks):02d}.000Z"


@pytest.fixture
def resources(registry: TenantRegistry, clock) -> ResourceService:
    return ResourceService(registry, clock=clock)
