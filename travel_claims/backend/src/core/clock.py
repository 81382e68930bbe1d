"""Time sources used for claim timestamps and ledger month buckets."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def month_key(moment: datetime) -> str:
    """Return the ``YYYY-MM`` bucket for ``moment``."""

    return f"{moment.year:04d}-{moment.month:02d}"


__all__ = ["Clock", "SystemClock", "month_key"]
