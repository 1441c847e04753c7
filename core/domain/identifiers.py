from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4


def generate_id() -> str:
    return str(uuid4())


def utc_now() -> datetime:
    # Stored naive in UTC; SQLite drops tzinfo on round-trip.
    return datetime.now(timezone.utc).replace(tzinfo=None)


__all__ = ["generate_id", "utc_now"]
