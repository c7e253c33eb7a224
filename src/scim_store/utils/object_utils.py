from __future__ import annotations

import copy
import uuid
from typing import TypeVar

T = TypeVar("T")


def new_id() -> str:
    return str(uuid.uuid4())


def clone(value: T) -> T:
    return copy.deepcopy(value)

