"""Comparison windows and growth arithmetic.

Every growth figure compares two adjacent, equal-length, non-overlapping
windows: ``[previous_start, start)`` and ``[start, end)``.

Invariants:
- start - previous_start == end - start
- start < end
- growth is 0 when the previous value is 0, whatever the current value
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Literal

from pydantic import BaseModel, Field, model_validator


PeriodName = Literal[
    "today",
    "yesterday",
    "this_week",
    "last_7_days",
    "this_month",
    "last_30_days",
    "last_90_days",
    "this_year",
]

PERIOD_NAMES: tuple[str, ...] = (
    "today",
    "yesterday",
    "this_week",
    "last_7_days",
    "this_month",
    "last_30_days",
    "last_90_days",
    "this_year",
)

DEFAULT_PERIOD = "last_30_days"


def utc_now() -> datetime:
    """Naive UTC timestamp, matching what the store persists."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _midnight(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


class PeriodWindow(BaseModel):
    """Current window plus the equally long window right before it."""

    start: datetime
    end: datetime
    previous_start: datetime
    length_in_days: int = Field(..., ge=1)

    @model_validator(mode="after")
    def validate_adjacent_windows(self) -> "PeriodWindow":
        if self.end <= self.start:
            raise ValueError("Window end must be after start")
        if self.start - self.previous_start != self.end - self.start:
            raise ValueError("Previous window must have the same duration as the current window")
        return self

    @property
    def previous_end(self) -> datetime:
        return self.start

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @classmethod
    def between(cls, start: datetime, end: datetime) -> "PeriodWindow":
        duration = end - start
        days = max(1, math.ceil(duration.total_seconds() / 86400))
        return cls(start=start, end=end, previous_start=start - duration, length_in_days=days)

    @classmethod
    def trailing(cls, days: int, now: datetime | None = None) -> "PeriodWindow":
        end = now or utc_now()
        return cls.between(end - timedelta(days=days), end)

    @classmethod
    def from_period(cls, period: str | None, now: datetime | None = None) -> "PeriodWindow":
        """Resolve a period keyword into a window ending at ``now``.

        Calendar periods (today, this_month, this_year) run from the start of
        the calendar unit to ``now``. Yesterday is the full previous day.
        """
        now = now or utc_now()
        name = period or DEFAULT_PERIOD
        if name == "today":
            start = _midnight(now)
            if start == now:
                return cls.trailing(1, now)
            return cls.between(start, now)
        if name == "yesterday":
            today = _midnight(now)
            return cls.between(today - timedelta(days=1), today)
        if name in ("this_week", "last_7_days"):
            return cls.trailing(7, now)
        if name == "this_month":
            start = _midnight(now).replace(day=1)
            if start == now:
                return cls.trailing(1, now)
            return cls.between(start, now)
        if name == "last_30_days":
            return cls.trailing(30, now)
        if name == "last_90_days":
            return cls.trailing(90, now)
        if name == "this_year":
            start = _midnight(now).replace(month=1, day=1)
            if start == now:
                return cls.trailing(1, now)
            return cls.between(start, now)
        raise ValueError(f"Unknown period '{name}'. Expected one of: {', '.join(PERIOD_NAMES)}")

    def weekly_buckets(self, max_buckets: int = 13) -> list[tuple[datetime, datetime]]:
        """Split the window into at most ``max_buckets`` equal buckets, a week wide when possible."""
        duration = self.duration
        width = max(timedelta(days=7), duration / max_buckets)
        count = min(max_buckets, max(1, math.ceil(duration / width)))
        width = duration / count
        edges = [self.start + width * i for i in range(count)] + [self.end]
        return [(edges[i], edges[i + 1]) for i in range(count)]

    def describe(self) -> dict[str, str | int]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "previousStart": self.previous_start.isoformat(),
            "lengthInDays": self.length_in_days,
        }


def growth_ratio(current: float, previous: float) -> float:
    """Unrounded percentage change from ``previous`` to ``current``; 0 when previous is 0."""
    if not previous:
        return 0.0
    return (current - previous) / previous * 100


def growth_pct(current: float, previous: float) -> float:
    """``growth_ratio`` rounded for display."""
    return round(growth_ratio(current, previous), 1)


def safe_ratio(numerator: float, denominator: float, *, scale: float = 1.0, digits: int = 2) -> float:
    """``numerator / denominator * scale`` or 0 when the denominator is 0."""
    if not denominator:
        return 0.0
    return round(numerator / denominator * scale, digits)
