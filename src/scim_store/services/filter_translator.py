"""
Translate protocol filters (`attribute op value`) into Mongo query documents.

Protocol operators are mapped through a single dispatch table. Operators that
are already part of the engine's own vocabulary pass through with the `$`
prefix, so `{"operator": "in", "value": [...]}` behaves like Mongo's `$in`.
"""

from __future__ import annotations

import re
from typing import Any, Callable

from scim_store.domain.entities.query import FilterOperator
from scim_store.errors import InvalidFilterError
from scim_store.configs.logging_config import get_logger

log = get_logger(__name__)

NATIVE_OPERATORS: tuple[str, ...] = (
    "eq",
    "ne",
    "gt",
    "gte",
    "lt",
    "lte",
    "in",
    "nin",
    "regex",
    "exists",
    "size",
    "type",
    "all",
)

VALID_OPERATORS: tuple[str, ...] = NATIVE_OPERATORS + tuple(
    op.value for op in FilterOperator if op.value not in NATIVE_OPERATORS
)


def _text(value: Any) -> str:
    return re.escape(str(value))


_TRANSLATIONS: dict[FilterOperator, Callable[[Any], tuple[str, Any]]] = {
    FilterOperator.EQ: lambda v: ("$eq", v),
    FilterOperator.NE: lambda v: ("$ne", v),
    FilterOperator.CO: lambda v: ("$regex", _text(v)),
    FilterOperator.SW: lambda v: ("$regex", f"^{_text(v)}.*"),
    FilterOperator.EW: lambda v: ("$regex", f".*{_text(v)}$"),
    FilterOperator.GE: lambda v: ("$gte", v),
    FilterOperator.LE: lambda v: ("$lte", v),
    FilterOperator.GT: lambda v: ("$gt", v),
    FilterOperator.LT: lambda v: ("$lt", v),
}


def translate(operator: str, value: Any) -> tuple[str, Any]:
    """Return `(native_operator, native_value)` for a protocol operator."""
    op = (operator or "").strip().lower()
    try:
        scim_op = FilterOperator(op)
    except ValueError:
        scim_op = None

    if scim_op is not None:
        return _TRANSLATIONS[scim_op](value)
    if op in NATIVE_OPERATORS:
        return f"${op}", value

    log.info("filter.translate invalid_operator=%s", operator)
    raise InvalidFilterError(operator, VALID_OPERATORS)


def build_predicate(attribute: str, native_operator: str, native_value: Any) -> dict[str, Any]:
    return {attribute: {native_operator: native_value}}


def build_unique_lookup(attribute: str, value: Any) -> dict[str, Any]:
    # a mapping here would be read as an operator document
    if isinstance(value, dict):
        log.info("filter.unique_lookup invalid_value attribute=%s", attribute)
        raise InvalidFilterError(
            FilterOperator.EQ.value,
            VALID_OPERATORS,
            message=f"filter value for '{attribute}' must be a plain value",
        )
    # id is matched exactly; other text attributes ignore case
    if attribute == "id" or not isinstance(value, str):
        return {attribute: value}
    return {attribute: {"$regex": f"^{_text(value)}$", "$options": "i"}}
