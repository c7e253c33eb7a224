from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_VERSION_RE = re.compile(r'(?:W/)?"?(\d+)"?')


class ResourceKind(str, Enum):
    USER = "User"
    GROUP = "Group"
    ENTITLEMENT = "Entitlement"


@dataclass(frozen=True)
class ResourceKindSpec:
    kind: ResourceKind
    collection: str
    # eq on these is a unique lookup
    identifying: frozenset[str]
    # eq on these is always a scan, never a unique lookup
    relationship: frozenset[str]
    # mandatory on create, unique within the collection
    required_attribute: str | None
    unique_fields: tuple[str, ...]
    indexed_fields: tuple[str, ...] = ()
    versioned: bool = True


KIND_SPECS: dict[ResourceKind, ResourceKindSpec] = {
    ResourceKind.USER: ResourceKindSpec(
        kind=ResourceKind.USER,
        collection="users",
        identifying=frozenset({"id", "userName", "externalId"}),
        relationship=frozenset({"groups.value", "entitlements.value"}),
        required_attribute="userName",
        unique_fields=("id", "userName"),
    ),
    ResourceKind.GROUP: ResourceKindSpec(
        kind=ResourceKind.GROUP,
        collection="groups",
        identifying=frozenset({"id", "displayName", "externalId"}),
        relationship=frozenset({"members.value"}),
        required_attribute="displayName",
        unique_fields=("id", "displayName"),
    ),
    ResourceKind.ENTITLEMENT: ResourceKindSpec(
        kind=ResourceKind.ENTITLEMENT,
        collection="entitlements",
        identifying=frozenset({"id", "displayName", "type"}),
        relationship=frozenset(),
        required_attribute=None,
        unique_fields=("id",),
        indexed_fields=("type",),
        versioned=False,
    ),
}


class WeakVersion(BaseModel):
    """Monotonic version counter, rendered as a weak ETag (W/"<n>") at the boundary."""

    model_config = ConfigDict(frozen=True)

    count: int = 0

    @classmethod
    def parse(cls, raw: Any) -> "WeakVersion":
        if isinstance(raw, WeakVersion):
            return raw
        if isinstance(raw, bool):
            return cls()
        if isinstance(raw, int):
            return cls(count=max(raw, 0))
        if isinstance(raw, dict) and isinstance(raw.get("count"), int):
            return cls(count=max(raw["count"], 0))
        if isinstance(raw, str):
            m = _VERSION_RE.fullmatch(raw.strip())
            if m:
                return cls(count=int(m.group(1)))
        return cls()

    def next(self) -> "WeakVersion":
        return WeakVersion(count=self.count + 1)

    def __str__(self) -> str:
        return f'W/"{self.count}"'


class Meta(BaseModel):
    model_config = ConfigDict(extra="allow")

    resourceType: Optional[str] = None
    created: Optional[str] = None
    lastModified: Optional[str] = None
    version: WeakVersion = Field(default_factory=WeakVersion)

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, v):
        return WeakVersion.parse(v)

    def to_document(self) -> dict[str, Any]:
        doc = self.model_dump(exclude_none=True)
        doc["version"] = self.version.count
        return doc

    def to_resource(self) -> dict[str, Any]:
        doc = self.model_dump(exclude_none=True)
        doc["version"] = str(self.version)
        return doc


class EntitlementGrant(BaseModel):
    """Snapshot of an entitlement held by a user."""

    value: Any
    display: str
    type: str = "License"
    primary: bool = False


class GrantChange(BaseModel):
    """One entry of a PATCH entitlements list."""

    model_config = ConfigDict(extra="ignore")

    value: Any = None
    operation: Optional[str] = None
    display: Optional[str] = None
    type: Optional[str] = None
    primary: Optional[bool] = None


class EntitlementUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    displayName: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None


def to_resource(doc: dict[str, Any]) -> dict[str, Any]:
    """Render a stored document for callers: version counter becomes a weak tag."""
    meta = doc.get("meta")
    if isinstance(meta, dict):
        doc = dict(doc)
        doc["meta"] = Meta.model_validate(meta).to_resource()
    return doc
