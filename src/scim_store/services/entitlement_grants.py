from __future__ import annotations

from typing import Any, Iterable

from scim_store.configs.logging_config import get_logger
from scim_store.domain.entities.resource import EntitlementGrant, GrantChange

log = get_logger(__name__)

GRANT_ADD = "add"
GRANT_REMOVE = "remove"
DEFAULT_GRANT_TYPE = "License"


def has_grant(grants: list[dict[str, Any]] | None, value: Any) -> bool:
    return any(g.get("value") == value for g in grants or [])


def make_grant(
    value: Any,
    display: str | None = None,
    type_: str | None = None,
    primary: bool | None = None,
) -> dict[str, Any]:
    return EntitlementGrant(
        value=value,
        display=display or str(value),
        type=type_ or DEFAULT_GRANT_TYPE,
        primary=primary or False,
    ).model_dump()


def reconcile_grants(
    existing: list[dict[str, Any]] | None,
    changes: Iterable[Any],
) -> list[dict[str, Any]]:
    """
    Apply PATCH entitlement entries to a user's grant list.

    Rules:
    1. operation=add appends a grant unless one with the same value exists
    2. operation=remove drops the grant with that value, absent is a no-op
    3. any other operation is ignored and the batch continues
    4. entries are applied in order, so a later entry wins

    The input list is not modified; a new list is returned.
    """
    grants = [dict(g) for g in existing or []]

    for raw in changes:
        if isinstance(raw, GrantChange):
            change = raw
        elif isinstance(raw, dict):
            change = GrantChange.model_validate(raw)
        else:
            log.info("grants.skip unsupported_entry=%r", raw)
            continue

        operation = (change.operation or "").lower()
        if operation not in (GRANT_ADD, GRANT_REMOVE):
            log.info("grants.skip value=%s operation=%s", change.value, change.operation)
            continue
        if change.value is None:
            log.info("grants.skip operation=%s missing value", operation)
            continue

        if operation == GRANT_ADD:
            if has_grant(grants, change.value):
                log.debug("grants.add noop value=%s", change.value)
                continue
            grants.append(make_grant(change.value, change.display, change.type, change.primary))
            log.info("grants.add value=%s", change.value)
        else:
            before = len(grants)
            grants = [g for g in grants if g.get("value") != change.value]
            if len(grants) == before:
                log.debug("grants.remove noop value=%s", change.value)
            else:
                log.info("grants.remove value=%s", change.value)

    return grants
