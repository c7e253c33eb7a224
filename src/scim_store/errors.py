from __future__ import annotations

from typing import Any, Sequence

SCIM_ERROR_SCHEMA = "urn:ietf:params:scim:api:messages:2.0:Error"


class AppError(Exception):
    """Base error for expected failures."""

    scim_type: str | None = None

    def __init__(self, message: str, *, http_status: int = 400):
        super().__init__(message)
        self.message = message
        self.http_status = http_status

    def to_scim(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "schemas": [SCIM_ERROR_SCHEMA],
            "status": str(self.http_status),
            "detail": self.message,
        }
        if self.scim_type:
            body["scimType"] = self.scim_type
        return body


class InvalidFilterError(AppError):
    scim_type = "invalidFilter"

    def __init__(self, operator: str, valid_operators: Sequence[str], message: str | None = None):
        self.operator = operator
        self.valid_operators = list(valid_operators)
        super().__init__(
            message
            or (
                f"filter operator '{operator}' is not valid, valid operators are: "
                f"{','.join(self.valid_operators)}"
            )
        )


class UnsupportedFilterError(InvalidFilterError):
    def __init__(self, raw_filter: str):
        self.raw_filter = raw_filter
        super().__init__(
            operator="",
            valid_operators=[],
            message=f"not supporting advanced filtering: {raw_filter}",
        )


class UnknownTenantError(AppError):
    def __init__(self, tenant: str):
        self.tenant = tenant
        super().__init__(f"unsupported baseEntity={tenant}", http_status=404)


class InvalidValueError(AppError):
    scim_type = "invalidValue"

    def __init__(self, attribute: str, message: str | None = None):
        self.attribute = attribute
        super().__init__(message or f"{attribute} is required")


class AlreadyExistsError(AppError):
    scim_type = "uniqueness"

    def __init__(self, attribute: str, value: Any):
        self.attribute = attribute
        self.value = value
        super().__init__(f"resource with {attribute} '{value}' already exists", http_status=409)


class NotFoundError(AppError):
    scim_type = "notFound"

    def __init__(self, resource_id: str, resource: str = "resource"):
        self.resource_id = resource_id
        super().__init__(f"{resource} id={resource_id} does not exist", http_status=404)
