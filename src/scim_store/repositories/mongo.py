from __future__ import annotations

import re

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from mongomock_motor import AsyncMongoMockClient

from scim_store.configs.settings import Settings
from scim_store.configs.logging_config import get_logger

log = get_logger(__name__)

_INVALID_DB_CHARS = re.compile(r'[/\\. "$*<>:|?]')


def get_mongo_client(settings: Settings) -> AsyncIOMotorClient:
    log.info("mongo.client.create uri=%s", settings.mongo_uri)
    return AsyncIOMotorClient(settings.mongo_uri)


def get_embedded_client() -> AsyncMongoMockClient:
    log.info("mongo.client.create embedded=true")
    return AsyncMongoMockClient()


def db_name_for(dbname: str) -> str:
    # "scim-entitlements.db" -> "scim-entitlements_db"
    return _INVALID_DB_CHARS.sub("_", dbname)


def get_mongo_db(client, dbname: str) -> AsyncIOMotorDatabase:
    name = db_name_for(dbname)
    log.info("mongo.db.select db=%s", name)
    return client[name]
