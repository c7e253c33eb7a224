from __future__ import annotations

import pytest

from scim_store.configs.settings import Settings, TenantSettings
from scim_store.domain.entities.resource import ResourceKind
from scim_store.errors import UnknownTenantError
from scim_store.main import create_store
from scim_store.repositories.mongo import db_name_for
from scim_store.repositories.tenant_registry import TenantRegistry


def test_db_name_for_strips_invalid_characters() -> None:
    assert db_name_for("loki-entitlements.db") == "loki-entitlements_db"


def test_should_seed_defaults_to_in_memory_only() -> None:
    assert TenantSettings().should_seed is True
    assert TenantSettings(persistence=True).should_seed is False
    assert TenantSettings(persistence=True, seed_test_data=True).should_seed is True


@pytest.mark.asyncio
async def test_duplicate_db_name_skips_second_tenant() -> None:
    settings = Settings(
        tenants={
            "a": TenantSettings(dbname="shared.db"),
            "b": TenantSettings(dbname="shared.db"),
        }
    )
    registry = await TenantRegistry.from_settings(settings)
    assert registry.tenants == ["a"]
    with pytest.raises(UnknownTenantError):
        registry.get("b")


@pytest.mark.asyncio
async def test_tenants_are_isolated() -> None:
    settings = Settings(
        tenants={
            "a": TenantSettings(dbname="a.db"),
            "b": TenantSettings(dbname="b.db", seed_test_data=False),
        }
    )
    registry = await TenantRegistry.from_settings(settings)
    assert await registry.get("a").users.count() == 2
    assert await registry.get("a").groups.count() == 2
    assert await registry.get("a").for_kind(ResourceKind.ENTITLEMENT).count() == 4
    assert await registry.get("b").users.count() == 0


@pytest.mark.asyncio
async def test_create_store_wires_services() -> None:
    store = await create_store(Settings(), configure_logging=False)
    res = await store.queries.query("undefined", ResourceKind.USER)
    assert res["totalResults"] == 2
    created = await store.resources.create("undefined", ResourceKind.GROUP, {"displayName": "Ops"})
    assert created["meta"]["version"] == 'W/"1"'
    store.close()
