"""
Energy-aware schedule optimization entry point.
"""

from __future__ import annotations

import logging
import random
import threading
import time as time_module
from collections.abc import Iterable, Sequence
from dataclasses import replace

from .assembler import assemble_day_schedules
from .config import GeneticConfig
from .energy import EnergyMatrix, analyze_energy_patterns
from .exceptions import InvalidWindowError, TimezoneMismatchError
from .genetic import GeneticScheduler
from .intervals import is_aware
from .models import (
    FixedCommitment,
    FlexibleTask,
    HistoryRecord,
    OptimizationResult,
    OptimizationStrategy,
    SchedulingWindow,
)

logger = logging.getLogger(__name__)


def prioritize_tasks(
    tasks: Sequence[FlexibleTask],
    strategy: OptimizationStrategy = OptimizationStrategy.BALANCED,
    prioritize_task_ids: Sequence[str] | None = None,
) -> list[FlexibleTask]:
    """Order tasks before the search.

    Deadline priority puts the earliest deadline first and undated tasks last.
    An explicit id ordering is applied afterwards; unlisted tasks keep their
    relative order at the end.
    """
    ordered = list(tasks)
    if strategy == OptimizationStrategy.DEADLINE_PRIORITY:
        ordered.sort(key=lambda task: (0, task.deadline) if task.deadline else (1,))

    if prioritize_task_ids:
        rank = {task_id: index for index, task_id in enumerate(prioritize_task_ids)}
        ordered.sort(key=lambda task: rank.get(task.id, len(rank)))
    return ordered


def _check_timezones(
    window: SchedulingWindow | None,
    commitments: Iterable[FixedCommitment],
    tasks: Iterable[FlexibleTask],
) -> None:
    """Reject runs that mix naive and timezone-aware datetimes.

    History records are only bucketed by weekday and hour, so they may use
    either form.
    """
    moments = [c.start for c in commitments] + [t.deadline for t in tasks if t.deadline]
    kinds = {is_aware(moment) for moment in moments}
    if window is not None and window.tz is not None:
        kinds.add(True)
    if len(kinds) > 1:
        raise TimezoneMismatchError(
            "Commitments, deadlines and window must be either all timezone-aware or all naive"
        )


def _with_timezone(
    window: SchedulingWindow,
    commitments: Iterable[FixedCommitment],
    tasks: Iterable[FlexibleTask],
) -> SchedulingWindow:
    """Borrow a timezone from the inputs when the window has none."""
    if window.tz is not None:
        return window
    moments = [c.start for c in commitments] + [t.deadline for t in tasks if t.deadline]
    for moment in moments:
        if moment.tzinfo is not None:
            return replace(window, tz=moment.tzinfo)
    return window


def optimize_schedule(
    fixed_commitments: Sequence[FixedCommitment],
    flexible_tasks: Sequence[FlexibleTask],
    window: SchedulingWindow | None = None,
    *,
    energy_matrix: EnergyMatrix | None = None,
    history: Iterable[HistoryRecord] | None = None,
    strategy: OptimizationStrategy = OptimizationStrategy.BALANCED,
    prioritize_task_ids: Sequence[str] | None = None,
    config: GeneticConfig | None = None,
    rng: random.Random | None = None,
    cancel_event: threading.Event | None = None,
) -> OptimizationResult:
    """
    Place flexible tasks into the free time of ``window``.

    Args:
        fixed_commitments: Immovable busy periods
        flexible_tasks: Tasks to place
        window: Inclusive calendar range; may be omitted when there are no
            flexible tasks
        energy_matrix: Precomputed energy pattern; inferred from ``history``
            when omitted
        history: Past activities for energy inference
        strategy: Task pre-sort strategy
        prioritize_task_ids: Explicit task ordering applied after ``strategy``
        config: Engine configuration
        rng: Random source; defaults to one seeded from ``config.random_seed``
        cancel_event: Set to stop after the current generation

    Returns:
        OptimizationResult with day schedules and unscheduled task ids

    Raises:
        InvalidWindowError: If tasks are supplied without a window
        TimezoneMismatchError: If naive and aware datetimes are mixed
    """
    started = time_module.perf_counter()
    config = config or GeneticConfig()
    fixed_commitments = list(fixed_commitments)
    _check_timezones(window, fixed_commitments, flexible_tasks)

    if not flexible_tasks:
        return OptimizationResult(
            success=True,
            days=assemble_day_schedules([], fixed_commitments),
            unscheduled_tasks=[],
            status="NO_TASKS",
            solve_time_seconds=time_module.perf_counter() - started,
            energy_matrix=energy_matrix,
        )

    if window is None:
        raise InvalidWindowError("A scheduling window is required to place flexible tasks")
    window = _with_timezone(window, fixed_commitments, flexible_tasks)

    if energy_matrix is None:
        energy_matrix = analyze_energy_patterns(history or [])

    tasks = prioritize_tasks(flexible_tasks, strategy, prioritize_task_ids)
    scheduler = GeneticScheduler(
        fixed_commitments, tasks, energy_matrix, window, config, rng=rng
    )
    outcome = scheduler.run(cancel_event=cancel_event)
    best = outcome.best

    unscheduled = scheduler.unscheduled_tasks(best.assignment)
    if unscheduled:
        logger.warning(f"Could not place {len(unscheduled)} task(s): {', '.join(unscheduled)}")

    result = OptimizationResult(
        success=True,
        days=assemble_day_schedules(best.assignment, fixed_commitments),
        unscheduled_tasks=unscheduled,
        status=outcome.status,
        fitness=best.fitness,
        generations_run=outcome.generations_run,
        fitness_history=outcome.fitness_history,
        solve_time_seconds=time_module.perf_counter() - started,
        energy_matrix=energy_matrix,
    )
    logger.info(
        f"Optimized {window.start.isoformat()}..{window.end.isoformat()}: "
        f"{len(best.assignment)} blocks, {len(unscheduled)} unscheduled, "
        f"fitness {best.fitness:.4f}"
    )
    return result
