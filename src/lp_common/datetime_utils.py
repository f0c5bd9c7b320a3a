"""UTC datetime utilities."""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def minutes_ago(minutes: float) -> datetime:
    """Cutoff timestamp used by the reconciliation sweeps."""
    return utc_now() - timedelta(minutes=minutes)
