from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class FilterOperator(str, Enum):
    EQ = "eq"
    NE = "ne"
    CO = "co"
    SW = "sw"
    EW = "ew"
    GE = "ge"
    LE = "le"
    GT = "gt"
    LT = "lt"


class ResourceQuery(BaseModel):
    """
    Generic query handed over by the protocol front end.

    Either a simple `attribute operator value` filter, a compound `rawFilter`
    (rejected), or nothing at all.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    attribute: Optional[str] = None
    operator: Optional[str] = None
    value: Any = None
    raw_filter: Optional[str] = Field(default=None, alias="rawFilter")
    start_index: Optional[int] = Field(default=None, alias="startIndex")
    count: Optional[int] = None

    @property
    def has_filter(self) -> bool:
        return bool(self.operator)
