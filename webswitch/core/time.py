# webswitch/core/time.py
from __future__ import annotations
from datetime import datetime, timezone

__all__ = ["utcNow", "localStamp"]



def utcNow() -> datetime:
    return datetime.now(timezone.utc)



def localStamp(fmt: str = "%Y%m%d_%H%M%S", when: datetime | None = None) -> str:
    """Local wall-clock timestamp rendered with `fmt` (used for backup directory names)."""
    return (when or datetime.now()).strftime(fmt)
