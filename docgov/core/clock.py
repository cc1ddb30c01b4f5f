from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional

SECONDS_PER_DAY = 24 * 60 * 60


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already (that is how Mongo hands them back)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def whole_days_until(target: datetime, now: Optional[datetime] = None) -> int:
    """
    Floor of the difference in days between `now` and `target`.
    Negative once `target` is in the past: 1 second ago -> -1.
    """
    ref = as_utc(now) if now is not None else utc_now()
    delta = as_utc(target) - ref
    return math.floor(delta.total_seconds() / SECONDS_PER_DAY)
