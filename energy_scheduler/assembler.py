"""
Turns a winning assignment into per-day schedules.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from .models import DaySchedule, FixedCommitment, ScheduledBlock


def assemble_day_schedules(
    assignment: Iterable[ScheduledBlock],
    fixed_commitments: Iterable[FixedCommitment],
) -> list[DaySchedule]:
    """Group blocks and commitments by start day, each day sorted by start."""
    days: dict[date, DaySchedule] = {}

    def add(block: ScheduledBlock) -> None:
        day = days.setdefault(block.day, DaySchedule(date=block.day))
        day.blocks.append(block)

    for block in assignment:
        add(block)
    for commitment in fixed_commitments:
        add(ScheduledBlock.from_commitment(commitment))

    for day in days.values():
        day.blocks.sort(key=lambda block: block.start)
    return sorted(days.values(), key=lambda day: day.date)
