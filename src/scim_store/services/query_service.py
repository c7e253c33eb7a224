from __future__ import annotations

from typing import Any

from scim_store.configs.logging_config import get_logger
from scim_store.configs.settings import Settings, get_settings
from scim_store.domain.entities.query import ResourceQuery
from scim_store.domain.entities.resource import ResourceKind, ResourceKindSpec, to_resource
from scim_store.errors import InvalidFilterError, UnsupportedFilterError
from scim_store.repositories.tenant_registry import TenantRegistry
from scim_store.services.filter_translator import (
    VALID_OPERATORS,
    build_predicate,
    build_unique_lookup,
    translate,
)

log = get_logger(__name__)


def build_query(spec: ResourceKindSpec, req: ResourceQuery) -> dict[str, Any]:
    """
    Mongo query for a resource query.

    Order matters:
    1. eq on an identifying attribute -> unique lookup (id exact, others case-insensitive)
    2. any other simple filter -> scan with the translated predicate
    3. compound rawFilter -> rejected
    4. nothing -> every record
    """
    if req.has_filter:
        native_op, native_value = translate(req.operator, req.value)
        if not req.attribute:
            raise InvalidFilterError(
                req.operator, VALID_OPERATORS, message="filter attribute is missing"
            )
        if (
            native_op == "$eq"
            and req.attribute in spec.identifying
            and req.attribute not in spec.relationship
        ):
            return build_unique_lookup(req.attribute, native_value)
        return build_predicate(req.attribute, native_op, native_value)
    if req.raw_filter:
        raise UnsupportedFilterError(req.raw_filter)
    return {}


def page_window(
    start_index: int | None,
    count: int | None,
    *,
    default_count: int = 100,
    max_count: int | None = None,
) -> tuple[int, int]:
    """Return (skip, limit) for a 1-based startIndex and a page size."""
    start_index = start_index or 1
    count = count or default_count
    if max_count is not None:
        count = min(count, max_count)
    return max(0, start_index - 1), max(0, count)


class QueryService:
    def __init__(self, registry: TenantRegistry, settings: Settings | None = None):
        self._registry = registry
        self._settings = settings or get_settings()

    async def query(
        self,
        tenant: str,
        kind: ResourceKind,
        req: ResourceQuery | dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if req is None:
            req = ResourceQuery()
        elif isinstance(req, dict):
            req = ResourceQuery.model_validate(req)

        repo = self._registry.get(tenant).for_kind(kind)
        action = f"svc.{repo.spec.collection}.query"
        log.info(
            "%s start tenant=%s attribute=%s operator=%s raw_filter=%s start_index=%s count=%s",
            action,
            tenant,
            req.attribute,
            req.operator,
            bool(req.raw_filter),
            req.start_index,
            req.count,
        )

        query = build_query(repo.spec, req)
        skip, limit = page_window(
            req.start_index,
            req.count,
            default_count=self._settings.default_count,
            max_count=self._settings.max_count,
        )
        items, total = await repo.list(query=query, skip=skip, limit=limit)

        resources = [to_resource(it) for it in items]
        log.info(
            "%s done tenant=%s returned=%s total=%s",
            action,
            tenant,
            len(resources),
            total,
        )
        return {"Resources": resources, "totalResults": total}
