from __future__ import annotations

import datetime as dt
from typing import Callable

Clock = Callable[[], dt.datetime]


def utcnow() -> dt.datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


def whole_seconds(start: dt.datetime, end: dt.datetime) -> int:
    """Seconds between two timestamps, truncated toward zero and never negative."""
    delta = end - start
    millis = delta.days * 86_400_000 + delta.seconds * 1000 + delta.microseconds // 1000
    return max(0, millis // 1000)


def format_seconds(total_seconds: int) -> str:
    hours, rest = divmod(max(0, int(total_seconds)), 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
