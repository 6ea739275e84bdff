# trainer_portal/time_policy.py
from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Optional

# Plan must be live this long before the first feedback for it is due
FIRST_WINDOW = timedelta(days=7)

# Minimum gap between two feedbacks for the same plan version
REPEAT_WINDOW = timedelta(days=14)

_DAY_SECONDS = 86400


def utcnow() -> datetime:
    """Naive UTC, same convention as every stored timestamp."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize to naive UTC. Aware datetimes are converted; naive ones are
    assumed to already be UTC.
    """
    if value is None:
        return None
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def days_remaining(target: datetime, now: datetime) -> int:
    """
    Whole days until `target`, rounded up. Negative once target has passed.
    """
    delta = as_utc_naive(target) - as_utc_naive(now)
    return math.ceil(delta.total_seconds() / _DAY_SECONDS)


def progress_fraction(remaining: timedelta, total: timedelta) -> float:
    """
    Share of `total` already elapsed, clamped to [0, 1]. Display only.
    """
    total_s = total.total_seconds()
    if total_s <= 0:
        return 1.0
    fraction = (total_s - remaining.total_seconds()) / total_s
    return min(1.0, max(0.0, fraction))
