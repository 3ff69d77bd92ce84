"""Time utilities (UTC now, envelope timestamps, epoch rounding)."""
from __future__ import annotations
import math
from datetime import datetime, timezone

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def utc_timestamp() -> str:
    """ISO-8601 UTC string with a ``Z`` suffix, used in every response envelope."""
    return utc_now().isoformat().replace("+00:00", "Z")

def epoch_ceil(epoch_seconds: float) -> int:
    return int(math.ceil(epoch_seconds))

__all__ = ["utc_now", "utc_timestamp", "epoch_ceil"]
