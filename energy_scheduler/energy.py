"""
Energy patterns: a day-of-week by hour-of-day grid of energy scores, and the
analyzer that infers one from completed study history.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any

from .exceptions import EnergyMatrixError
from .models import ActivityCategory, Complexity, HistoryRecord, Priority

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7
HOURS_PER_DAY = 24
NEUTRAL_ENERGY = 5
BASE_QUALITY = 5


def day_of_week(moment: datetime) -> int:
    """Day index with Sunday=0 ... Saturday=6."""
    return (moment.weekday() + 1) % DAYS_PER_WEEK


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class EnergyMatrix:
    """7 x 24 energy scores, nominally on a 1-10 scale.

    Cells are not clamped: inferred values can exceed 10.
    """

    def __init__(self, rows: Sequence[Sequence[float]]):
        if len(rows) != DAYS_PER_WEEK or any(len(row) != HOURS_PER_DAY for row in rows):
            raise EnergyMatrixError(
                f"Energy matrix must be {DAYS_PER_WEEK}x{HOURS_PER_DAY}"
            )
        self._rows: tuple[tuple[float, ...], ...] = tuple(tuple(row) for row in rows)

    @classmethod
    def uniform(cls, value: float = NEUTRAL_ENERGY) -> EnergyMatrix:
        return cls([[value] * HOURS_PER_DAY for _ in range(DAYS_PER_WEEK)])

    @classmethod
    def from_patterns(cls, patterns: Iterable[Mapping[str, Any]]) -> EnergyMatrix:
        """Build from ``[{"day_of_week": d, "hourly_energy": [...24]}, ...]``.

        Days absent from ``patterns`` stay neutral.
        """
        rows = [[NEUTRAL_ENERGY] * HOURS_PER_DAY for _ in range(DAYS_PER_WEEK)]
        for pattern in patterns:
            day = int(pattern["day_of_week"])
            hourly = list(pattern["hourly_energy"])
            if not 0 <= day < DAYS_PER_WEEK:
                raise EnergyMatrixError(f"day_of_week out of range: {day}")
            if len(hourly) != HOURS_PER_DAY:
                raise EnergyMatrixError(
                    f"Day {day} has {len(hourly)} hourly values, expected {HOURS_PER_DAY}"
                )
            rows[day] = hourly
        return cls(rows)

    def to_patterns(self) -> list[dict[str, Any]]:
        return [
            {"day_of_week": day, "hourly_energy": list(row)}
            for day, row in enumerate(self._rows)
        ]

    def value(self, day: int, hour: int) -> float:
        return self._rows[day][hour]

    def energy_at(self, moment: datetime) -> float:
        return self._rows[day_of_week(moment)][moment.hour]

    def row(self, day: int) -> tuple[float, ...]:
        return self._rows[day]

    def cells(self) -> list[float]:
        return [value for row in self._rows for value in row]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EnergyMatrix):
            return NotImplemented
        return self._rows == other._rows

    def __repr__(self) -> str:
        return f"EnergyMatrix(min={min(self.cells())}, max={max(self.cells())})"


class EnergyPatternAnalyzer:
    """Infers an energy matrix from completed study history.

    Each completed study record gets a quality score (5, +/-1 for complex/easy,
    +/-1 for high/low priority). Scores are averaged per (day, hour) of the
    record's start, doubled and rounded; unsampled cells stay neutral. Each
    day's hours 1..22 are then smoothed with a centred 3-point average.
    """

    def __init__(self, history: Iterable[HistoryRecord]):
        self.history = list(history)

    def _qualifying(self) -> list[HistoryRecord]:
        return [
            record
            for record in self.history
            if record.completed and record.category == ActivityCategory.STUDY
        ]

    @staticmethod
    def completion_quality(record: HistoryRecord) -> int:
        quality = BASE_QUALITY
        if record.complexity == Complexity.COMPLEX:
            quality += 1
        elif record.complexity == Complexity.EASY:
            quality -= 1
        if record.priority == Priority.HIGH:
            quality += 1
        elif record.priority == Priority.LOW:
            quality -= 1
        return quality

    def analyze(self) -> EnergyMatrix:
        completed = self._qualifying()
        if not completed:
            logger.debug("No completed study history, using neutral energy matrix")
            return EnergyMatrix.uniform(NEUTRAL_ENERGY)

        sums = [[0] * HOURS_PER_DAY for _ in range(DAYS_PER_WEEK)]
        counts = [[0] * HOURS_PER_DAY for _ in range(DAYS_PER_WEEK)]
        for record in completed:
            day = day_of_week(record.start)
            hour = record.start.hour
            sums[day][hour] += self.completion_quality(record)
            counts[day][hour] += 1

        rows: list[list[int]] = []
        for day in range(DAYS_PER_WEEK):
            row = [NEUTRAL_ENERGY] * HOURS_PER_DAY
            for hour in range(HOURS_PER_DAY):
                if counts[day][hour]:
                    average = sums[day][hour] / counts[day][hour]
                    row[hour] = round_half_up(average * 2)
            rows.append(self._smooth(row))

        logger.info(
            f"Inferred energy pattern from {len(completed)} completed study records"
        )
        return EnergyMatrix(rows)

    @staticmethod
    def _smooth(row: list[int]) -> list[int]:
        # Neighbours come from the unsmoothed row; hours 0 and 23 are untouched.
        smoothed = list(row)
        for hour in range(1, HOURS_PER_DAY - 1):
            smoothed[hour] = round_half_up((row[hour - 1] + row[hour] + row[hour + 1]) / 3)
        return smoothed


def analyze_energy_patterns(history: Iterable[HistoryRecord]) -> EnergyMatrix:
    return EnergyPatternAnalyzer(history).analyze()
