from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Naive UTC timestamp; every stored datetime uses this convention."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def date_stamp(dt: Optional[datetime] = None) -> str:
    """Compact UTC calendar date (YYYYMMDD) used in receipt numbers."""
    return f"{dt or utcnow():%Y%m%d}"


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """JSON form of a stored timestamp: second precision, trailing 'Z'. Naive values are UTC."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=0).isoformat() + "Z"
