"""
Data models for energy-aware schedule optimization.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta, tzinfo
from enum import Enum
from typing import TYPE_CHECKING

from .exceptions import InvalidTaskError, InvalidWindowError
from .intervals import TimeInterval, check_interval

if TYPE_CHECKING:
    from .energy import EnergyMatrix


class ActivityCategory(str, Enum):
    """Activity classification. Study and assignment work is flexible."""

    WORK = "work"
    CLASS = "class"
    STUDY = "study"
    ASSIGNMENT = "assignment"
    OTHER = "other"

    @property
    def is_flexible(self) -> bool:
        return self in (ActivityCategory.STUDY, ActivityCategory.ASSIGNMENT)


class Complexity(str, Enum):
    EASY = "easy"
    MODERATE = "moderate"
    COMPLEX = "complex"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class OptimizationStrategy(str, Enum):
    """Pre-sort applied to the flexible task list before the search."""

    ENERGY_BASED = "energy_based"
    DEADLINE_PRIORITY = "deadline_priority"
    BALANCED = "balanced"


@dataclass(frozen=True)
class FixedCommitment:
    """Immovable busy period (work shift, class)."""

    id: str
    title: str
    start: datetime
    end: datetime
    category: ActivityCategory = ActivityCategory.OTHER

    def __post_init__(self) -> None:
        check_interval(self.start, self.end, f"Commitment {self.id}")

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start, self.end)

    @property
    def day(self) -> date:
        return self.start.date()


@dataclass(frozen=True)
class FlexibleTask:
    """Duration-bound work without a fixed time.

    ``session_hours`` overrides the engine's default session length and
    ``sessions`` is the number of blocks the task needs.
    """

    id: str
    title: str
    category: ActivityCategory = ActivityCategory.STUDY
    complexity: Complexity = Complexity.MODERATE
    priority: Priority = Priority.MEDIUM
    deadline: datetime | None = None
    session_hours: float | None = None
    sessions: int = 1

    def __post_init__(self) -> None:
        if self.session_hours is not None and self.session_hours <= 0:
            raise InvalidTaskError(
                self.id, f"session_hours must be positive, got {self.session_hours}"
            )
        if self.sessions < 1:
            raise InvalidTaskError(self.id, f"needs at least one session, got {self.sessions}")


@dataclass(frozen=True)
class HistoryRecord:
    """A past activity, used to infer energy patterns."""

    start: datetime
    category: ActivityCategory
    complexity: Complexity = Complexity.MODERATE
    priority: Priority = Priority.MEDIUM
    completed: bool = False


@dataclass(frozen=True)
class ScheduledBlock:
    """A concrete placement of a task or a materialized commitment."""

    task_id: str
    start: datetime
    end: datetime
    title: str
    category: ActivityCategory
    is_fixed: bool = False

    def __post_init__(self) -> None:
        check_interval(self.start, self.end, f"Block for {self.task_id}")

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start, self.end)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def day(self) -> date:
        return self.start.date()

    def overlaps(self, other: ScheduledBlock | TimeInterval) -> bool:
        return self.start < other.end and other.start < self.end

    def moved(self, start: datetime, end: datetime) -> ScheduledBlock:
        return replace(self, start=start, end=end)

    @classmethod
    def from_commitment(cls, commitment: FixedCommitment) -> ScheduledBlock:
        return cls(
            task_id=commitment.id,
            start=commitment.start,
            end=commitment.end,
            title=commitment.title,
            category=commitment.category,
            is_fixed=True,
        )


@dataclass
class Candidate:
    """One individual of the population."""

    assignment: list[ScheduledBlock] = field(default_factory=list)
    fitness: float = 0.0


@dataclass(frozen=True)
class SchedulingWindow:
    """Inclusive calendar range to schedule into.

    Datetimes are accepted and truncated to their date; an aware start
    supplies the timezone for day boundaries.
    """

    start: date
    end: date
    tz: tzinfo | None = None

    def __post_init__(self) -> None:
        if isinstance(self.start, datetime):
            if self.tz is None and self.start.tzinfo is not None:
                object.__setattr__(self, "tz", self.start.tzinfo)
            object.__setattr__(self, "start", self.start.date())
        if isinstance(self.end, datetime):
            object.__setattr__(self, "end", self.end.date())
        if self.end < self.start:
            raise InvalidWindowError(
                f"Window end {self.end.isoformat()} is before start {self.start.isoformat()}"
            )

    def days(self) -> list[date]:
        span = (self.end - self.start).days
        return [self.start + timedelta(days=offset) for offset in range(span + 1)]


@dataclass
class DaySchedule:
    date: date
    blocks: list[ScheduledBlock] = field(default_factory=list)


@dataclass
class OptimizationResult:
    success: bool
    days: list[DaySchedule] = field(default_factory=list)
    unscheduled_tasks: list[str] = field(default_factory=list)
    status: str = "UNKNOWN"
    fitness: float = 0.0
    generations_run: int = 0
    fitness_history: list[float] = field(default_factory=list)
    solve_time_seconds: float = 0.0
    energy_matrix: EnergyMatrix | None = None

    @property
    def blocks(self) -> list[ScheduledBlock]:
        return [block for day in self.days for block in day.blocks]

    @property
    def total_scheduled_hours(self) -> float:
        """Hours placed for flexible work (commitments excluded)."""
        return sum(
            block.duration.total_seconds() / 3600.0
            for block in self.blocks
            if not block.is_fixed
        )
