# =======================================================================================
# keycustody/utils/timeutil.py - Timestamp Helpers
# =======================================================================================
from datetime import datetime, timezone
from typing import Optional

# Timestamps are stored as naive UTC so every backend compares them the same way


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
