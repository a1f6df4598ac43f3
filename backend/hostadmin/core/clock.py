# backend/hostadmin/core/clock.py
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Callable

# Stored timestamps are integer milliseconds since the Unix epoch.
DAY_MS = 24 * 60 * 60 * 1000

Clock = Callable[[], int]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def now_ms() -> int:
    return int(utcnow().timestamp() * 1000)


def days_remaining(subscription_end: int, now: int) -> int:
    """ceil((end - now) / 1 day). Zero or negative means expired."""
    return math.ceil((subscription_end - now) / DAY_MS)
