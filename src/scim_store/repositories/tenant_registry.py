from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from scim_store.configs.logging_config import get_logger
from scim_store.configs.settings import Settings, TenantSettings
from scim_store.domain.entities.resource import KIND_SPECS, ResourceKind
from scim_store.errors import UnknownTenantError
from scim_store.repositories.mongo import get_embedded_client, get_mongo_client, get_mongo_db
from scim_store.repositories.resource_repository import ResourceRepository
from scim_store.repositories.seed import seed_entitlements, seed_groups, seed_users

log = get_logger(__name__)


@dataclass
class TenantCollections:
    tenant: str
    users: ResourceRepository
    groups: ResourceRepository
    entitlements: ResourceRepository

    def for_kind(self, kind: ResourceKind) -> ResourceRepository:
        if kind is ResourceKind.USER:
            return self.users
        if kind is ResourceKind.GROUP:
            return self.groups
        return self.entitlements


class TenantRegistry:
    """Owns the collections of every configured tenant ("baseEntity")."""

    def __init__(self) -> None:
        self._tenants: dict[str, TenantCollections] = {}
        self._clients: list[Any] = []

    def register(self, collections: TenantCollections) -> None:
        self._tenants[collections.tenant] = collections

    def get(self, tenant: str) -> TenantCollections:
        collections = self._tenants.get(tenant)
        if collections is None:
            log.info("tenant.lookup unknown tenant=%s", tenant)
            raise UnknownTenantError(tenant)
        return collections

    @property
    def tenants(self) -> list[str]:
        return list(self._tenants)

    def close(self) -> None:
        # embedded engines live and die with the process
        for client in self._clients:
            client.close()
        self._clients = []

    @classmethod
    async def from_settings(
        cls,
        settings: Settings,
        *,
        embedded_client_factory: Callable[[], Any] = get_embedded_client,
    ) -> "TenantRegistry":
        registry = cls()
        db_names: list[str] = []
        server_client = None

        for tenant, tenant_settings in settings.tenants.items():
            if tenant_settings.dbname in db_names:
                log.error(
                    "tenant.init error tenant=%s database '%s' is already used by another baseEntity configuration",
                    tenant,
                    tenant_settings.dbname,
                )
                continue
            db_names.append(tenant_settings.dbname)

            if tenant_settings.persistence:
                if server_client is None:
                    server_client = get_mongo_client(settings)
                    registry._clients.append(server_client)
                client = server_client
            else:
                client = embedded_client_factory()

            db = get_mongo_db(client, tenant_settings.dbname)
            collections = TenantCollections(
                tenant=tenant,
                users=ResourceRepository(db, KIND_SPECS[ResourceKind.USER], tenant),
                groups=ResourceRepository(db, KIND_SPECS[ResourceKind.GROUP], tenant),
                entitlements=ResourceRepository(db, KIND_SPECS[ResourceKind.ENTITLEMENT], tenant),
            )
            await _initialize(collections, tenant_settings)
            registry.register(collections)
            log.info(
                "tenant.init done tenant=%s db=%s persistence=%s",
                tenant,
                tenant_settings.dbname,
                tenant_settings.persistence,
            )
        return registry


async def _initialize(collections: TenantCollections, tenant_settings: TenantSettings) -> None:
    for repo in (collections.users, collections.groups, collections.entitlements):
        await repo.ensure_indexes()

    if not tenant_settings.should_seed:
        return
    # never seed on top of existing data
    if await collections.users.count() == 0:
        await collections.users.insert_many(seed_users())
    if await collections.groups.count() == 0:
        await collections.groups.insert_many(seed_groups())
    if await collections.entitlements.count() == 0:
        await collections.entitlements.insert_many(seed_entitlements())
    log.info("tenant.seed done tenant=%s", collections.tenant)
