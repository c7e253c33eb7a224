from __future__ import annotations

import pytest

from scim_store.domain.entities.resource import ResourceKind
from scim_store.errors import (
    AlreadyExistsError,
    AppError,
    InvalidValueError,
    NotFoundError,
    UnknownTenantError,
)

SEEDED = "undefined"
EMPTY = "empty"


@pytest.mark.asyncio
async def test_create_user_stamps_id_and_meta(resources, queries) -> None:
    user = await resources.create(EMPTY, ResourceKind.USER, {"userName": "bjensen", "title": "Guide"})
    assert user["id"]
    assert user["userName"] == "bjensen"
    assert user["meta"]["resourceType"] == "User"
    assert user["meta"]["version"] == 'W/"1"'
    assert user["meta"]["created"] == user["meta"]["lastModified"]

    other = await resources.create(EMPTY, ResourceKind.USER, {"userName": "jsmith"})
    assert other["id"] != user["id"]


@pytest.mark.asyncio
async def test_create_does_not_alias_caller_data(resources, queries) -> None:
    record = {"userName": "bjensen", "emails": [{"value": "b@example.com"}]}
    await resources.create(EMPTY, ResourceKind.USER, record)
    record["emails"][0]["value"] = "changed"
    assert "id" not in record

    res = await queries.query(EMPTY, ResourceKind.USER)
    assert res["Resources"][0]["emails"][0]["value"] == "b@example.com"


@pytest.mark.asyncio
async def test_create_requires_identifying_attribute(resources) -> None:
    with pytest.raises(InvalidValueError) as exc:
        await resources.create(EMPTY, ResourceKind.USER, {"title": "x"})
    assert exc.value.attribute == "userName"

    with pytest.raises(InvalidValueError) as exc:
        await resources.create(EMPTY, ResourceKind.GROUP, {})
    assert exc.value.attribute == "displayName"


@pytest.mark.asyncio
async def test_create_duplicate_user_name(resources, queries) -> None:
    await resources.create(EMPTY, ResourceKind.USER, {"userName": "bjensen"})
    with pytest.raises(AlreadyExistsError) as exc:
        await resources.create(EMPTY, ResourceKind.USER, {"userName": "bjensen"})
    assert exc.value.value == "bjensen"
    assert (await queries.query(EMPTY, ResourceKind.USER))["totalResults"] == 1


@pytest.mark.asyncio
async def test_create_duplicate_group_against_seed(resources) -> None:
    with pytest.raises(AlreadyExistsError):
        await resources.create(SEEDED, ResourceKind.GROUP, {"displayName": "Admins"})


@pytest.mark.asyncio
async def test_create_entitlement_is_not_supported(resources) -> None:
    with pytest.raises(AppError):
        await resources.create(SEEDED, ResourceKind.ENTITLEMENT, {"displayName": "New"})


@pytest.mark.asyncio
async def test_delete(resources, queries) -> None:
    group = await resources.create(EMPTY, ResourceKind.GROUP, {"displayName": "Ops"})
    assert await resources.delete(EMPTY, ResourceKind.GROUP, group["id"]) is None
    assert (await queries.query(EMPTY, ResourceKind.GROUP))["totalResults"] == 0

    with pytest.raises(NotFoundError) as exc:
        await resources.delete(EMPTY, ResourceKind.GROUP, group["id"])
    assert exc.value.resource_id == group["id"]


@pytest.mark.asyncio
async def test_update_missing_id_leaves_collection_unchanged(resources, queries) -> None:
    before = await queries.query(SEEDED, ResourceKind.USER)
    with pytest.raises(NotFoundError):
        await resources.update(SEEDED, ResourceKind.USER, "missing", {"title": "x"})
    assert await queries.query(SEEDED, ResourceKind.USER) == before


@pytest.mark.asyncio
async def test_update_is_shallow_merge_and_protects_id_and_meta(resources) -> None:
    user = await resources.create(
        EMPTY, ResourceKind.USER, {"userName": "bjensen", "name": {"givenName": "Barbara", "familyName": "Jensen"}}
    )
    updated = await resources.update(
        EMPTY,
        ResourceKind.USER,
        user["id"],
        {"name": {"givenName": "Babs"}, "id": "other", "meta": {"version": 'W/"99"'}, "active": False},
    )
    assert updated["id"] == user["id"]
    assert updated["name"] == {"givenName": "Babs"}
    assert updated["active"] is False
    assert updated["meta"]["version"] == 'W/"2"'
    assert updated["meta"]["created"] == user["meta"]["created"]
    assert updated["meta"]["lastModified"] != user["meta"]["lastModified"]


@pytest.mark.asyncio
async def test_update_group(resources) -> None:
    group = await resources.create(EMPTY, ResourceKind.GROUP, {"displayName": "Ops"})
    updated = await resources.update(EMPTY, ResourceKind.GROUP, group["id"], {"members": [{"value": "u1"}]})
    assert updated["members"] == [{"value": "u1"}]
    assert updated["meta"]["version"] == 'W/"2"'


@pytest.mark.asyncio
async def test_update_seeded_user_without_meta_starts_versioning(resources) -> None:
    updated = await resources.update(SEEDED, ResourceKind.USER, "jsmith", {"title": "Manager"})
    assert updated["meta"]["version"] == 'W/"1"'
    assert updated["meta"]["resourceType"] == "User"


@pytest.mark.asyncio
async def test_patch_entitlements_scenario(resources) -> None:
    user = await resources.create(EMPTY, ResourceKind.USER, {"userName": "bjensen"})
    assert user["meta"]["version"] == 'W/"1"'

    patch = {"entitlements": [{"value": "entitlement-123", "operation": "add"}]}
    added = await resources.update(EMPTY, ResourceKind.USER, user["id"], patch)
    assert [g["value"] for g in added["entitlements"]] == ["entitlement-123"]
    assert added["meta"]["version"] == 'W/"2"'
    assert patch["entitlements"][0]["operation"] == "add"

    again = await resources.update(EMPTY, ResourceKind.USER, user["id"], patch)
    assert len(again["entitlements"]) == 1

    removed = await resources.update(
        EMPTY,
        ResourceKind.USER,
        user["id"],
        {"entitlements": [{"value": "entitlement-123", "operation": "remove"}]},
    )
    assert removed["entitlements"] == []
    assert removed["meta"]["version"] == 'W/"4"'


@pytest.mark.asyncio
async def test_patch_entitlements_with_other_attributes(resources) -> None:
    updated = await resources.update(
        SEEDED,
        ResourceKind.USER,
        "bjensen",
        {
            "title": "Lead",
            "entitlements": [
                {"value": "entitlement-789", "operation": "remove"},
                {"value": "entitlement-abc", "operation": "add", "display": "Premium Support", "type": "Support"},
            ],
        },
    )
    assert updated["title"] == "Lead"
    assert [g["value"] for g in updated["entitlements"]] == ["entitlement-123", "entitlement-abc"]
    assert updated["entitlements"][1]["type"] == "Support"


@pytest.mark.asyncio
async def test_update_entitlement_fields(resources, queries) -> None:
    ent = await resources.update_entitlement_fields(SEEDED, "entitlement-456", {"displayName": "Starter License"})
    assert ent["displayName"] == "Starter License"
    assert ent["type"] == "License"
    assert ent["description"] == "Basic license with limited features"
    assert "meta" not in ent

    res = await queries.query(
        SEEDED, ResourceKind.ENTITLEMENT, {"attribute": "displayName", "operator": "eq", "value": "starter license"}
    )
    assert res["totalResults"] == 1

    # grants keep the display captured at grant time
    users = await queries.query(SEEDED, ResourceKind.USER, {"attribute": "id", "operator": "eq", "value": "jsmith"})
    assert users["Resources"][0]["entitlements"][0]["display"] == "Basic License"


@pytest.mark.asyncio
async def test_update_entitlement_fields_missing(resources) -> None:
    with pytest.raises(NotFoundError):
        await resources.update_entitlement_fields(SEEDED, "entitlement-000", {"type": "x"})


@pytest.mark.asyncio
async def test_update_dispatches_entitlement_kind(resources) -> None:
    ent = await resources.update(SEEDED, ResourceKind.ENTITLEMENT, "entitlement-abc", {"description": "24/7"})
    assert ent["description"] == "24/7"
    assert ent["displayName"] == "Premium Support"


@pytest.mark.asyncio
async def test_grant_helpers(resources) -> None:
    assert await resources.list_user_entitlements(SEEDED, "nobody") == []
    assert await resources.list_user_entitlements(SEEDED, "bjensen") == ["entitlement-123", "entitlement-789"]

    assert await resources.assign_entitlement(SEEDED, "bjensen", "entitlement-456") is True
    assert await resources.assign_entitlement(SEEDED, "bjensen", "entitlement-123") is False
    assert "entitlement-456" in await resources.list_user_entitlements(SEEDED, "bjensen")

    assert await resources.remove_entitlement(SEEDED, "bjensen", "entitlement-123") is True
    assert await resources.remove_entitlement(SEEDED, "bjensen", "nonexistent") is False
    assert "entitlement-123" not in await resources.list_user_entitlements(SEEDED, "bjensen")


@pytest.mark.asyncio
async def test_assign_snapshots_entitlement_details(resources, queries) -> None:
    await resources.assign_entitlement(SEEDED, "jsmith", "entitlement-789")
    res = await queries.query(SEEDED, ResourceKind.USER, {"attribute": "userName", "operator": "eq", "value": "jsmith"})
    grant = res["Resources"][0]["entitlements"][-1]
    assert grant == {"value": "entitlement-789", "display": "Admin Access", "type": "Permission", "primary": False}


@pytest.mark.asyncio
async def test_writes_on_unknown_tenant(resources) -> None:
    with pytest.raises(UnknownTenantError):
        await resources.create("nope", ResourceKind.USER, {"userName": "x"})


@pytest.mark.asyncio
async def test_update_to_taken_user_name_conflicts(resources, queries) -> None:
    await resources.create(EMPTY, ResourceKind.USER, {"userName": "a"})
    b = await resources.create(EMPTY, ResourceKind.USER, {"userName": "b"})
    with pytest.raises(AlreadyExistsError) as exc:
        await resources.update(EMPTY, ResourceKind.USER, b["id"], {"userName": "a"})
    assert exc.value.attribute == "userName"
    assert exc.value.to_scim()["scimType"] == "uniqueness"

    res = await queries.query(EMPTY, ResourceKind.USER, {"attribute": "id", "operator": "eq", "value": b["id"]})
    assert res["Resources"][0]["userName"] == "b"
    assert res["Resources"][0]["meta"]["version"] == 'W/"1"'


@pytest.mark.asyncio
async def test_update_group_to_taken_display_name_conflicts(resources) -> None:
    with pytest.raises(AlreadyExistsError):
        await resources.update(SEEDED, ResourceKind.GROUP, "Employees", {"displayName": "Admins"})


@pytest.mark.asyncio
async def test_update_keeping_own_user_name(resources) -> None:
    user = await resources.create(EMPTY, ResourceKind.USER, {"userName": "a"})
    updated = await resources.update(EMPTY, ResourceKind.USER, user["id"], {"userName": "a", "title": "x"})
    assert updated["title"] == "x"


@pytest.mark.asyncio
async def test_operator_document_as_identifying_value_is_rejected(resources) -> None:
    await resources.create(EMPTY, ResourceKind.USER, {"userName": "a"})
    with pytest.raises(InvalidValueError) as exc:
        await resources.create(EMPTY, ResourceKind.USER, {"userName": {"$ne": None}})
    assert exc.value.attribute == "userName"

    user = await resources.create(EMPTY, ResourceKind.USER, {"userName": "b"})
    with pytest.raises(InvalidValueError):
        await resources.update(EMPTY, ResourceKind.USER, user["id"], {"userName": {"$ne": None}})
