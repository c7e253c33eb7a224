"""
Test-mode data loaded into non-persistent tenants.
"""

from __future__ import annotations

from typing import Any

from scim_store.utils.object_utils import clone

TEST_USERS: list[dict[str, Any]] = [
    {
        "id": "bjensen",
        "userName": "bjensen",
        "externalId": "bjensen",
        "active": True,
        "name": {
            "formatted": "Ms. Barbara J Jensen III",
            "familyName": "Jensen",
            "givenName": "Barbara",
        },
        "title": "Tour Guide",
        "emails": [{"value": "bjensen@example.com", "type": "work"}],
        "phoneNumbers": [{"value": "555-555-5555", "type": "work"}],
    },
    {
        "id": "jsmith",
        "userName": "jsmith",
        "externalId": "jsmith",
        "active": True,
        "name": {
            "formatted": "Mr. John Smith",
            "familyName": "Smith",
            "givenName": "John",
        },
        "title": "Sales Representative",
        "emails": [{"value": "jsmith@example.com", "type": "work"}],
        "phoneNumbers": [{"value": "555-555-5556", "type": "work"}],
    },
]

TEST_GROUPS: list[dict[str, Any]] = [
    {
        "id": "Admins",
        "displayName": "Admins",
        "members": [{"value": "bjensen", "display": "bjensen"}],
    },
    {
        "id": "Employees",
        "displayName": "Employees",
        "members": [
            {"value": "bjensen", "display": "bjensen"},
            {"value": "jsmith", "display": "jsmith"},
        ],
    },
]

TEST_ENTITLEMENTS: list[dict[str, Any]] = [
    {
        "id": "entitlement-123",
        "displayName": "Pro License",
        "type": "License",
        "description": "Professional license with full features",
    },
    {
        "id": "entitlement-456",
        "displayName": "Basic License",
        "type": "License",
        "description": "Basic license with limited features",
    },
    {
        "id": "entitlement-789",
        "displayName": "Admin Access",
        "type": "Permission",
        "description": "Administrative access to the system",
    },
    {
        "id": "entitlement-abc",
        "displayName": "Premium Support",
        "type": "Support",
        "description": "Premium customer support access",
    },
]

TEST_USER_GRANTS: dict[str, list[dict[str, Any]]] = {
    "bjensen": [
        {"value": "entitlement-123", "display": "Pro License", "type": "License", "primary": True},
        {"value": "entitlement-789", "display": "Admin Access", "type": "Permission"},
    ],
    "jsmith": [
        {"value": "entitlement-456", "display": "Basic License", "type": "License", "primary": True},
    ],
}


def seed_users() -> list[dict[str, Any]]:
    users = []
    for record in TEST_USERS:
        user = clone(record)
        user.pop("meta", None)
        grants = TEST_USER_GRANTS.get(user["userName"])
        if grants:
            user["entitlements"] = clone(grants)
        users.append(user)
    return users


def seed_groups() -> list[dict[str, Any]]:
    groups = []
    for record in TEST_GROUPS:
        group = clone(record)
        group.pop("meta", None)
        groups.append(group)
    return groups


def seed_entitlements() -> list[dict[str, Any]]:
    return clone(TEST_ENTITLEMENTS)
