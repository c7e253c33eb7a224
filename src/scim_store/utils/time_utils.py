from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_now() -> str:
    # Same shape as JavaScript's Date.toISOString(): 2024-01-31T12:00:00.000Z
    return utc_now().isoformat(timespec="milliseconds").replace("+00:00", "Z")
