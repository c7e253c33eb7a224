from __future__ import annotations

from typing import Any, Callable

from pymongo.errors import DuplicateKeyError

from scim_store.configs.logging_config import get_logger
from scim_store.domain.entities.resource import (
    KIND_SPECS,
    EntitlementUpdate,
    Meta,
    ResourceKind,
    WeakVersion,
    to_resource,
)
from scim_store.errors import AlreadyExistsError, AppError, InvalidValueError, NotFoundError
from scim_store.repositories.resource_repository import ResourceRepository
from scim_store.repositories.tenant_registry import TenantRegistry
from scim_store.services.entitlement_grants import GRANT_ADD, GRANT_REMOVE, has_grant, reconcile_grants
from scim_store.utils.object_utils import clone, new_id
from scim_store.utils.time_utils import iso_now

log = get_logger(__name__)

# Never overwritten by a patch.
_PROTECTED_KEYS = frozenset({"id", "meta", "_id"})


class ResourceService:
    """Create, delete and update users, groups and entitlements of one registry."""

    def __init__(
        self,
        registry: TenantRegistry,
        *,
        id_factory: Callable[[], str] = new_id,
        clock: Callable[[], str] = iso_now,
    ):
        self._registry = registry
        self._new_id = id_factory
        self._now = clock

    def _repo(self, tenant: str, kind: ResourceKind) -> ResourceRepository:
        return self._registry.get(tenant).for_kind(kind)

    async def create(self, tenant: str, kind: ResourceKind, record: dict[str, Any]) -> dict[str, Any]:
        spec = KIND_SPECS[kind]
        action = f"svc.{spec.collection}.create"
        log.info("%s start tenant=%s keys=%s", action, tenant, sorted(list((record or {}).keys())))
        if spec.required_attribute is None:
            raise AppError(f"create is not supported for {kind.value}", http_status=405)
        repo = self._repo(tenant, kind)

        attribute = spec.required_attribute
        value = (record or {}).get(attribute)
        if not value:
            log.info("%s invalid tenant=%s missing=%s", action, tenant, attribute)
            raise InvalidValueError(attribute)
        _check_identifying_value(attribute, value)

        if await repo.find_one({attribute: value}):
            log.info("%s conflict tenant=%s %s=%s", action, tenant, attribute, value)
            raise AlreadyExistsError(attribute, value)

        doc = clone(record)
        doc.pop("_id", None)
        doc["id"] = self._new_id()
        now = self._now()
        doc["meta"] = Meta(
            resourceType=kind.value,
            created=now,
            lastModified=now,
            version=WeakVersion(count=1),
        ).to_document()

        try:
            await repo.insert(doc)
        except DuplicateKeyError as e:
            log.info("%s conflict tenant=%s %s=%s duplicate_key", action, tenant, attribute, value)
            raise AlreadyExistsError(attribute, value) from e

        log.info("%s done tenant=%s id=%s", action, tenant, doc["id"])
        return to_resource(doc)

    async def delete(self, tenant: str, kind: ResourceKind, resource_id: str) -> None:
        spec = KIND_SPECS[kind]
        action = f"svc.{spec.collection}.delete"
        log.info("%s start tenant=%s id=%s", action, tenant, resource_id)
        if kind is ResourceKind.ENTITLEMENT:
            raise AppError(f"delete is not supported for {kind.value}", http_status=405)
        repo = self._repo(tenant, kind)

        if not await repo.get_by_id(resource_id):
            log.info("%s not_found tenant=%s id=%s", action, tenant, resource_id)
            raise NotFoundError(resource_id, kind.value.lower())

        await repo.delete(resource_id)
        log.info("%s done tenant=%s id=%s", action, tenant, resource_id)
        return None

    async def update(
        self,
        tenant: str,
        kind: ResourceKind,
        resource_id: str,
        partial: dict[str, Any],
    ) -> dict[str, Any]:
        if kind is ResourceKind.ENTITLEMENT:
            return await self.update_entitlement_fields(tenant, resource_id, partial)

        spec = KIND_SPECS[kind]
        action = f"svc.{spec.collection}.update"
        log.info(
            "%s start tenant=%s id=%s keys=%s",
            action,
            tenant,
            resource_id,
            sorted(list((partial or {}).keys())),
        )
        repo = self._repo(tenant, kind)

        doc = await repo.get_by_id(resource_id)
        if not doc:
            log.info("%s not_found tenant=%s id=%s", action, tenant, resource_id)
            raise NotFoundError(resource_id, kind.value.lower())

        patch = clone(partial or {})

        # Grant entries are reconciled, not written as a plain attribute.
        if kind is ResourceKind.USER and isinstance(patch.get("entitlements"), list):
            changes = patch.pop("entitlements")
            grants = reconcile_grants(doc.get("entitlements"), changes)
            if grants or "entitlements" in doc:
                doc["entitlements"] = grants

        for key, value in patch.items():
            if key in _PROTECTED_KEYS:
                continue
            doc[key] = value

        attribute = spec.required_attribute
        if attribute and attribute in patch:
            value = doc.get(attribute)
            _check_identifying_value(attribute, value)
            if await repo.find_one({attribute: value, "id": {"$ne": resource_id}}):
                log.info("%s conflict tenant=%s id=%s %s=%s", action, tenant, resource_id, attribute, value)
                raise AlreadyExistsError(attribute, value)

        self._advance_meta(doc, kind)
        try:
            await repo.replace(doc)
        except DuplicateKeyError as e:
            log.info("%s conflict tenant=%s id=%s duplicate_key", action, tenant, resource_id)
            raise AlreadyExistsError(attribute or "id", doc.get(attribute or "id")) from e

        log.info("%s done tenant=%s id=%s version=%s", action, tenant, resource_id, doc["meta"]["version"])
        return to_resource(doc)

    async def update_entitlement_fields(
        self,
        tenant: str,
        resource_id: str,
        fields: EntitlementUpdate | dict[str, Any],
    ) -> dict[str, Any]:
        action = "svc.entitlements.update"
        if isinstance(fields, dict):
            fields = EntitlementUpdate.model_validate(fields)
        changes = fields.model_dump(exclude_unset=True)
        log.info("%s start tenant=%s id=%s keys=%s", action, tenant, resource_id, sorted(changes))
        repo = self._repo(tenant, ResourceKind.ENTITLEMENT)

        doc = await repo.get_by_id(resource_id)
        if not doc:
            log.info("%s not_found tenant=%s id=%s", action, tenant, resource_id)
            raise NotFoundError(resource_id, "entitlement")

        doc.update(changes)
        await repo.replace(doc)
        log.info("%s done tenant=%s id=%s", action, tenant, resource_id)
        return doc

    async def list_user_entitlements(self, tenant: str, user_id: str) -> list[Any]:
        doc = await self._repo(tenant, ResourceKind.USER).get_by_id(user_id)
        if not doc:
            return []
        return [g.get("value") for g in doc.get("entitlements") or []]

    async def assign_entitlement(
        self,
        tenant: str,
        user_id: str,
        entitlement_id: str,
        *,
        primary: bool = False,
    ) -> bool:
        """Grant an entitlement; False when the user already holds it."""
        collections = self._registry.get(tenant)
        user = await collections.users.get_by_id(user_id)
        if not user:
            raise NotFoundError(user_id, "user")
        if has_grant(user.get("entitlements"), entitlement_id):
            log.info("svc.users.assign_entitlement noop tenant=%s id=%s value=%s", tenant, user_id, entitlement_id)
            return False

        change: dict[str, Any] = {"value": entitlement_id, "operation": GRANT_ADD, "primary": primary}
        # snapshot display and type at grant time
        entitlement = await collections.entitlements.get_by_id(entitlement_id)
        if entitlement:
            change["display"] = entitlement.get("displayName")
            change["type"] = entitlement.get("type")

        await self.update(tenant, ResourceKind.USER, user_id, {"entitlements": [change]})
        return True

    async def remove_entitlement(self, tenant: str, user_id: str, entitlement_id: str) -> bool:
        """Revoke an entitlement; False when the user does not hold it."""
        user = await self._repo(tenant, ResourceKind.USER).get_by_id(user_id)
        if not user:
            raise NotFoundError(user_id, "user")
        if not has_grant(user.get("entitlements"), entitlement_id):
            log.info("svc.users.remove_entitlement noop tenant=%s id=%s value=%s", tenant, user_id, entitlement_id)
            return False

        await self.update(
            tenant,
            ResourceKind.USER,
            user_id,
            {"entitlements": [{"value": entitlement_id, "operation": GRANT_REMOVE}]},
        )
        return True

    def _advance_meta(self, doc: dict[str, Any], kind: ResourceKind) -> None:
        raw = doc.get("meta")
        meta = Meta.model_validate(raw) if isinstance(raw, dict) else Meta()
        if not meta.resourceType:
            meta.resourceType = kind.value
        meta.lastModified = self._now()
        meta.version = meta.version.next()
        doc["meta"] = meta.to_document()


def _check_identifying_value(attribute: str, value: Any) -> None:
    # used verbatim in uniqueness lookups, so operator documents are refused
    if isinstance(value, dict):
        raise InvalidValueError(attribute, f"{attribute} must be a plain value")
