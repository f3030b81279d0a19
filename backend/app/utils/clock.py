from __future__ import annotations
from datetime import datetime, timedelta, timezone

def now_utc() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)  # columns store naive UTC


def days_from_now(days: int) -> datetime:
    return now_utc() + timedelta(days=days)
