"""
RegVerify — Daily Metrics
Calendar-day keys and the per-business verification_completed counter.
All "today" computations resolve in UTC through today().
"""
from datetime import datetime, timezone

from regverify.db import SERVER_TIMESTAMP, DocumentStore, Increment, daily_metric_path

VERIFICATION_COMPLETED = "verification_completed"


def today() -> datetime:
    return datetime.now(timezone.utc)


def day_key(d: datetime) -> str:
    """20250307 — record id, no separators."""
    return f"{d.year:04d}{d.month:02d}{d.day:02d}"


def day_label(d: datetime) -> str:
    """2025-03-07 — display value."""
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def increment_verification_completed(store: DocumentStore, business_id: str,
                                     now: datetime = None) -> str:
    """Add one completed verification to today's record. Returns the day key."""
    now = now or today()
    key = day_key(now)
    store.set(daily_metric_path(business_id, key), {
        "date": day_label(now),
        VERIFICATION_COMPLETED: Increment(1),
        "updatedAt": SERVER_TIMESTAMP,
    })
    return key
