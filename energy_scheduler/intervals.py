"""
Half-open time intervals and the subtraction primitive used for slot math.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo

from .exceptions import InvalidIntervalError

# Last representable instant of a day at millisecond resolution.
END_OF_DAY = time(23, 59, 59, 999000)


def is_aware(moment: datetime) -> bool:
    return moment.tzinfo is not None and moment.utcoffset() is not None


def check_interval(start: datetime, end: datetime, label: str = "Interval") -> None:
    """Raise unless ``start`` is strictly before ``end``.

    Mixing a naive and an aware endpoint is rejected instead of compared.
    """
    if is_aware(start) != is_aware(end) or not start < end:
        raise InvalidIntervalError(start, end, label)


@dataclass(frozen=True)
class TimeInterval:
    """A window of time occupying [start, end)."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        check_interval(self.start, self.end)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def duration_hours(self) -> float:
        return self.duration.total_seconds() / 3600.0

    def overlaps(self, other: TimeInterval) -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, other: TimeInterval) -> bool:
        return self.start <= other.start and other.end <= self.end


def day_bounds(day: date, tz: tzinfo | None = None) -> TimeInterval:
    """Full-day interval [00:00:00.000, 23:59:59.999) for ``day``."""
    return TimeInterval(
        start=datetime.combine(day, time.min, tzinfo=tz),
        end=datetime.combine(day, END_OF_DAY, tzinfo=tz),
    )


def subtract(slots: Sequence[TimeInterval], busy: TimeInterval) -> list[TimeInterval]:
    """Carve ``busy`` out of every slot it overlaps.

    Non-overlapping slots are kept as they are; an overlapped slot yields the
    part before ``busy`` and the part after it, whichever are non-empty.
    Slot order is preserved.
    """
    remaining: list[TimeInterval] = []
    for slot in slots:
        if not slot.overlaps(busy):
            remaining.append(slot)
            continue
        if busy.start > slot.start:
            remaining.append(TimeInterval(slot.start, busy.start))
        if busy.end < slot.end:
            remaining.append(TimeInterval(busy.end, slot.end))
    return remaining


def subtract_all(
    slots: Sequence[TimeInterval], busy: Iterable[TimeInterval]
) -> list[TimeInterval]:
    remaining = list(slots)
    for interval in busy:
        remaining = subtract(remaining, interval)
    return remaining
