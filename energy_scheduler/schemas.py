"""
Request and response models for the optimization API using Pydantic.
"""

from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .energy import EnergyMatrix
from .intervals import is_aware
from .models import (
    ActivityCategory,
    Complexity,
    DaySchedule,
    FixedCommitment,
    FlexibleTask,
    HistoryRecord,
    OptimizationResult,
    OptimizationStrategy,
    Priority,
    ScheduledBlock,
    SchedulingWindow,
)


class FixedCommitmentModel(BaseModel):
    """Immovable busy period."""

    id: str = Field(..., description="Unique commitment identifier")
    title: str = Field(..., description="Commitment title")
    category: ActivityCategory = Field(ActivityCategory.OTHER, description="Activity type")
    start: datetime = Field(..., description="Start time")
    end: datetime = Field(..., description="End time")

    @field_validator("end")
    @classmethod
    def end_after_start(cls, v: datetime, info: ValidationInfo) -> datetime:
        if "start" not in info.data:
            return v
        start = info.data["start"]
        if is_aware(start) != is_aware(v):
            raise ValueError("Start and end must both carry a timezone or both omit it")
        if v <= start:
            raise ValueError("End time must be after start time")
        return v

    def to_domain(self) -> FixedCommitment:
        return FixedCommitment(
            id=self.id,
            title=self.title,
            category=self.category,
            start=self.start,
            end=self.end,
        )


class FlexibleTaskModel(BaseModel):
    """Study or assignment work to be placed."""

    id: str = Field(..., description="Unique task identifier")
    title: str = Field(..., description="Task title")
    category: ActivityCategory = Field(ActivityCategory.STUDY, description="study or assignment")
    complexity: Complexity = Field(Complexity.MODERATE)
    priority: Priority = Field(Priority.MEDIUM)
    deadline: datetime | None = Field(None, description="Deadline for the task")
    session_hours: float | None = Field(None, gt=0, le=24, description="Hours per session")
    sessions: int = Field(1, ge=1, le=50, description="Number of sessions needed")

    @field_validator("category")
    @classmethod
    def category_is_flexible(cls, v: ActivityCategory) -> ActivityCategory:
        if not v.is_flexible:
            raise ValueError("Flexible tasks must be study or assignment work")
        return v

    def to_domain(self) -> FlexibleTask:
        return FlexibleTask(
            id=self.id,
            title=self.title,
            category=self.category,
            complexity=self.complexity,
            priority=self.priority,
            deadline=self.deadline,
            session_hours=self.session_hours,
            sessions=self.sessions,
        )


class ActivityModel(BaseModel):
    """Untyped activity record; ``type`` decides whether it is fixed or flexible."""

    id: str
    title: str
    type: ActivityCategory
    start: datetime | None = None
    end: datetime | None = None
    complexity: Complexity = Complexity.MODERATE
    priority: Priority = Priority.MEDIUM
    deadline: datetime | None = None


class HistoryRecordModel(BaseModel):
    """Past activity used for energy inference."""

    start: datetime
    category: ActivityCategory
    complexity: Complexity = Complexity.MODERATE
    priority: Priority = Priority.MEDIUM
    completed: bool = False

    def to_domain(self) -> HistoryRecord:
        return HistoryRecord(
            start=self.start,
            category=self.category,
            complexity=self.complexity,
            priority=self.priority,
            completed=self.completed,
        )


class EnergyPatternModel(BaseModel):
    """Hourly energy levels of one weekday (0=Sunday)."""

    day_of_week: int = Field(..., ge=0, le=6)
    hourly_energy: list[float] = Field(..., min_length=24, max_length=24)


class WindowModel(BaseModel):
    start: date = Field(..., description="First day (inclusive)")
    end: date = Field(..., description="Last day (inclusive)")

    def to_domain(self) -> SchedulingWindow:
        return SchedulingWindow(start=self.start, end=self.end)


class FitnessWeightsModel(BaseModel):
    """Partial fitness weight overrides."""

    model_config = ConfigDict(extra="forbid")

    energy: float | None = Field(None, ge=0)
    complexity: float | None = Field(None, ge=0)
    distribution: float | None = Field(None, ge=0)
    deadline: float | None = Field(None, ge=0)


class ConfigOverridesModel(BaseModel):
    """Per-request engine overrides; omitted fields keep the base configuration."""

    model_config = ConfigDict(extra="forbid")

    population_size: int | None = Field(None, ge=1)
    crossover_rate: float | None = Field(None, ge=0.0, le=1.0)
    mutation_rate: float | None = Field(None, ge=0.0, le=1.0)
    elitism_count: int | None = Field(None, ge=0)
    generations: int | None = Field(None, ge=0)
    tournament_size: int | None = Field(None, ge=1)
    default_session_hours: float | None = Field(None, gt=0)
    min_slot_hours: float | None = Field(None, gt=0)
    mutation_shift_hours: float | None = Field(None, ge=0)
    mutation_duration_minutes: float | None = Field(None, ge=0)
    min_session_hours: float | None = Field(None, gt=0)
    max_workers: int | None = Field(None, ge=1)
    max_time_in_seconds: float | None = Field(None, gt=0)
    random_seed: int | None = None
    weights: FitnessWeightsModel | None = None


class ScheduleRequest(BaseModel):
    """Request model for schedule optimization API."""

    fixed_commitments: list[FixedCommitmentModel] = Field(default_factory=list)
    flexible_tasks: list[FlexibleTaskModel] = Field(default_factory=list)
    activities: list[ActivityModel] = Field(
        default_factory=list, description="Mixed records split by type"
    )
    window: WindowModel | None = Field(None, description="Scheduling window")
    energy_patterns: list[EnergyPatternModel] | None = Field(
        None, description="Precomputed energy pattern; inferred from history when absent"
    )
    history: list[HistoryRecordModel] = Field(default_factory=list)
    strategy: OptimizationStrategy = Field(OptimizationStrategy.BALANCED)
    prioritize_task_ids: list[str] = Field(default_factory=list)
    config: ConfigOverridesModel = Field(
        default_factory=ConfigOverridesModel, description="Engine overrides"
    )
    seed: int | None = Field(None, description="Random seed for reproducible runs")


class ScheduledBlockModel(BaseModel):
    task_id: str
    start: datetime
    end: datetime
    title: str
    category: ActivityCategory
    is_fixed: bool = False

    @classmethod
    def from_block(cls, block: ScheduledBlock) -> "ScheduledBlockModel":
        return cls(
            task_id=block.task_id,
            start=block.start,
            end=block.end,
            title=block.title,
            category=block.category,
            is_fixed=block.is_fixed,
        )


class DayScheduleModel(BaseModel):
    date: date
    blocks: list[ScheduledBlockModel] = Field(default_factory=list)

    @classmethod
    def from_day(cls, day: DaySchedule) -> "DayScheduleModel":
        return cls(date=day.date, blocks=[ScheduledBlockModel.from_block(b) for b in day.blocks])


class ScheduleResultModel(BaseModel):
    """Result of schedule optimization."""

    success: bool = Field(..., description="Whether optimization succeeded")
    status: str = Field("", description="Search status")
    error_code: str | None = Field(None, description="Error code when success is false")
    days: list[DayScheduleModel] = Field(default_factory=list)
    unscheduled_tasks: list[str] = Field(
        default_factory=list, description="Tasks that couldn't be scheduled"
    )
    total_scheduled_hours: float = Field(0.0)
    fitness: float = Field(0.0)
    generations_run: int = Field(0)
    fitness_history: list[float] = Field(default_factory=list)
    solve_time_seconds: float = Field(0.0)
    energy_patterns: list[EnergyPatternModel] | None = None

    @classmethod
    def from_result(cls, result: OptimizationResult) -> "ScheduleResultModel":
        patterns = None
        if isinstance(result.energy_matrix, EnergyMatrix):
            patterns = [
                EnergyPatternModel(**pattern) for pattern in result.energy_matrix.to_patterns()
            ]
        return cls(
            success=result.success,
            status=result.status,
            days=[DayScheduleModel.from_day(day) for day in result.days],
            unscheduled_tasks=result.unscheduled_tasks,
            total_scheduled_hours=result.total_scheduled_hours,
            fitness=result.fitness,
            generations_run=result.generations_run,
            fitness_history=result.fitness_history,
            solve_time_seconds=result.solve_time_seconds,
            energy_patterns=patterns,
        )


class ScheduleResponse(BaseModel):
    """Response model for schedule optimization API."""

    result: ScheduleResultModel = Field(..., description="Optimization result")
    request_id: str | None = Field(None, description="Request identifier")
    generated_at: datetime = Field(default_factory=datetime.now, description="Response generation time")
