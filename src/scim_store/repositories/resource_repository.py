from __future__ import annotations

from typing import Any

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

from scim_store.configs.logging_config import get_logger
from scim_store.domain.entities.resource import ResourceKindSpec
from scim_store.utils.object_utils import clone

log = get_logger(__name__)

# Records are returned without the engine's own primary key.
_PROJECTION = {"_id": 0}


class ResourceRepository:
    """One tenant's collection of a single resource kind."""

    def __init__(self, db: AsyncIOMotorDatabase, spec: ResourceKindSpec, tenant: str):
        self._db = db
        self._spec = spec
        self._tenant = tenant
        self._col: AsyncIOMotorCollection = db[spec.collection]
        self._name = spec.collection

    @property
    def spec(self) -> ResourceKindSpec:
        return self._spec

    @property
    def tenant(self) -> str:
        return self._tenant

    async def ensure_indexes(self) -> None:
        log.info("repo.%s.ensure_indexes start tenant=%s", self._name, self._tenant)
        for field in self._spec.unique_fields:
            await self._col.create_index([(field, 1)], unique=True)
        for field in self._spec.indexed_fields:
            await self._col.create_index([(field, 1)])
        log.info("repo.%s.ensure_indexes done tenant=%s", self._name, self._tenant)

    async def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        log.debug("repo.%s.find_one tenant=%s query=%s", self._name, self._tenant, query)
        return await self._col.find_one(query, projection=_PROJECTION)

    async def get_by_id(self, resource_id: str) -> dict[str, Any] | None:
        return await self.find_one({"id": resource_id})

    async def list(
        self,
        *,
        query: dict[str, Any],
        skip: int,
        limit: int,
    ) -> tuple[list[dict[str, Any]], int]:
        log.info(
            "repo.%s.list tenant=%s skip=%s limit=%s query_keys=%s",
            self._name,
            self._tenant,
            skip,
            limit,
            sorted(list(query.keys())),
        )
        log.debug(f"executing query {query}")
        total = await self._col.count_documents(query)
        # Mongo treats limit(0) as "no limit"
        if limit <= 0 or skip >= total:
            return [], total
        cursor = self._col.find(query, projection=_PROJECTION).skip(skip).limit(limit)
        items = await cursor.to_list(length=limit)
        return items, total

    async def insert(self, doc: dict[str, Any]) -> dict[str, Any]:
        log.info("repo.%s.insert tenant=%s id=%s", self._name, self._tenant, doc.get("id"))
        # insert_one adds `_id` to the dict it is given
        await self._col.insert_one(clone(doc))
        return doc

    async def insert_many(self, docs: list[dict[str, Any]]) -> None:
        if not docs:
            return
        log.info("repo.%s.insert_many tenant=%s count=%s", self._name, self._tenant, len(docs))
        await self._col.insert_many([clone(d) for d in docs])

    async def replace(self, doc: dict[str, Any]) -> dict[str, Any]:
        log.info("repo.%s.replace tenant=%s id=%s", self._name, self._tenant, doc.get("id"))
        await self._col.replace_one({"id": doc["id"]}, clone(doc))
        return doc

    async def delete(self, resource_id: str) -> bool:
        log.info("repo.%s.delete tenant=%s id=%s", self._name, self._tenant, resource_id)
        res = await self._col.delete_one({"id": resource_id})
        return res.deleted_count > 0

    async def count(self) -> int:
        return await self._col.count_documents({})
