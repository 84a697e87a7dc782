"""Time sources used by analytics windows and checklist queries."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


@dataclass
class FixedClock:
    """Clock pinned to a single instant."""

    current: datetime

    def __post_init__(self) -> None:
        self.current = ensure_aware(self.current)

    def now(self) -> datetime:
        return self.current


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so window comparisons never mix kinds."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_utc(value: datetime) -> datetime:
    """Same instant expressed in UTC; calendar days and hours are read from this."""
    return ensure_aware(value).astimezone(timezone.utc)


def utc_isoformat(value: datetime) -> str:
    return to_utc(value).isoformat()


SYSTEM_CLOCK = SystemClock()
