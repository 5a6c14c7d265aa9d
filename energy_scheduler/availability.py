"""
Free-time calculation: full days minus fixed commitments.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date, tzinfo

from .intervals import TimeInterval, day_bounds, subtract, subtract_all
from .models import FixedCommitment, SchedulingWindow


def commitments_by_day(
    commitments: Iterable[FixedCommitment],
) -> dict[date, list[TimeInterval]]:
    """Busy intervals keyed by the calendar day each commitment starts on."""
    by_day: dict[date, list[TimeInterval]] = defaultdict(list)
    for commitment in commitments:
        by_day[commitment.day].append(commitment.interval)
    return dict(by_day)


def free_slots_for_day(
    day: date,
    busy_by_day: dict[date, list[TimeInterval]],
    *,
    tz: tzinfo | None = None,
    occupied: Sequence[TimeInterval] = (),
) -> list[TimeInterval]:
    """Free intervals of ``day`` in ascending order.

    ``occupied`` carves out additional intervals, e.g. blocks already accepted
    during conflict resolution.
    """
    slots = [day_bounds(day, tz)]
    slots = subtract_all(slots, busy_by_day.get(day, ()))
    for interval in occupied:
        slots = subtract(slots, interval)
    return slots


def compute_available_slots(
    window: SchedulingWindow, commitments: Iterable[FixedCommitment]
) -> list[TimeInterval]:
    """Free capacity for every day of ``window``, concatenated day by day."""
    busy_by_day = commitments_by_day(commitments)
    slots: list[TimeInterval] = []
    for day in window.days():
        slots.extend(free_slots_for_day(day, busy_by_day, tz=window.tz))
    return slots
