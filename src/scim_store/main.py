from __future__ import annotations

from dataclasses import dataclass

from scim_store.configs.logging_config import get_logger, setup_logging
from scim_store.configs.settings import Settings, get_settings
from scim_store.repositories.tenant_registry import TenantRegistry
from scim_store.services.query_service import QueryService
from scim_store.services.resource_service import ResourceService

log = get_logger(__name__)


@dataclass
class ScimStore:
    """What a protocol front end needs: read and write services over one registry."""

    settings: Settings
    registry: TenantRegistry
    queries: QueryService
    resources: ResourceService

    def close(self) -> None:
        log.info("shutdown.begin")
        self.registry.close()
        log.info("shutdown.done")


async def create_store(settings: Settings | None = None, *, configure_logging: bool = True) -> ScimStore:
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings.LOG_LEVEL)

    log.info(
        "startup.begin service=%s environment=%s tenants=%s",
        settings.SERVICE_NAME,
        settings.ENVIRONMENT,
        sorted(settings.tenants),
    )
    registry = await TenantRegistry.from_settings(settings)
    store = ScimStore(
        settings=settings,
        registry=registry,
        queries=QueryService(registry, settings),
        resources=ResourceService(registry),
    )
    log.info("startup.done tenants=%s", registry.tenants)
    return store
