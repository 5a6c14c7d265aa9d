"""
Energy-aware study scheduler.

Genetic search that places study and assignment sessions into free time around
fixed commitments, guided by an inferred hour-by-day energy pattern.
"""

from .api import optimize_schedule_api
from .config import FitnessWeights, GeneticConfig, Settings
from .core import optimize_schedule, prioritize_tasks
from .energy import EnergyMatrix, EnergyPatternAnalyzer, analyze_energy_patterns
from .exceptions import (
    ConfigurationError,
    EnergyMatrixError,
    InvalidIntervalError,
    InvalidTaskError,
    InvalidWindowError,
    SchedulerError,
    TimezoneMismatchError,
)
from .intervals import TimeInterval, subtract
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

__version__ = "0.1.0"
__all__ = [
    "ActivityCategory",
    "analyze_energy_patterns",
    "Complexity",
    "ConfigurationError",
    "DaySchedule",
    "EnergyMatrix",
    "EnergyMatrixError",
    "EnergyPatternAnalyzer",
    "FitnessWeights",
    "FixedCommitment",
    "FlexibleTask",
    "GeneticConfig",
    "HistoryRecord",
    "InvalidIntervalError",
    "InvalidTaskError",
    "InvalidWindowError",
    "optimize_schedule",
    "optimize_schedule_api",
    "OptimizationResult",
    "OptimizationStrategy",
    "Priority",
    "prioritize_tasks",
    "ScheduledBlock",
    "SchedulerError",
    "SchedulingWindow",
    "Settings",
    "subtract",
    "TimeInterval",
    "TimezoneMismatchError",
]
