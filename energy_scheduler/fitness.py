"""
Candidate scoring.

A block's score is a weighted sum of four sub-scores in [0, 1]; a candidate's
fitness is the mean block score.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .config import FitnessWeights
from .energy import EnergyMatrix
from .models import Complexity, FlexibleTask, ScheduledBlock

COMPLEXITY_VALUES: dict[Complexity, float] = {
    Complexity.EASY: 0.25,
    Complexity.MODERATE: 0.5,
    Complexity.COMPLEX: 1.0,
}

NEUTRAL_SCORE = 0.5
NO_DEADLINE_SCORE = 0.5
OVERDUE_SCORE = 0.1
DEADLINE_FLOOR = 0.2
DEADLINE_HORIZON_DAYS = 7.0
SECONDS_PER_DAY = 86400.0


class FitnessEvaluator:
    """Scores assignments against an energy matrix and the task list.

    Stateless after construction, so one instance can score many candidates
    concurrently.
    """

    def __init__(
        self,
        energy_matrix: EnergyMatrix,
        tasks: Iterable[FlexibleTask],
        weights: FitnessWeights | None = None,
    ):
        self.energy_matrix = energy_matrix
        self.tasks = {task.id: task for task in tasks}
        self.weights = weights or FitnessWeights()

    def energy_alignment(self, block: ScheduledBlock) -> float:
        # Inferred cells can exceed 10; clamp so the score stays within [0, 1].
        value = self.energy_matrix.energy_at(block.start) / 10.0
        return min(1.0, max(0.0, value))

    def complexity_alignment(self, block: ScheduledBlock) -> float:
        task = self.tasks.get(block.task_id)
        if task is None:
            return NEUTRAL_SCORE
        complexity = COMPLEXITY_VALUES.get(task.complexity, NEUTRAL_SCORE)
        return 1.0 - abs(self.energy_alignment(block) - complexity)

    @staticmethod
    def distribution_score(
        block: ScheduledBlock, assignment: Sequence[ScheduledBlock]
    ) -> float:
        """How evenly the sessions of ``block``'s task are spaced."""
        sessions = sorted(
            (b for b in assignment if b.task_id == block.task_id),
            key=lambda b: b.start,
        )
        if len(sessions) <= 1:
            return 1.0

        span = (sessions[-1].start - sessions[0].start).total_seconds()
        if span <= 0:
            return 0.0
        ideal_gap = span / (len(sessions) - 1)
        deviation = sum(
            abs((current.start - previous.start).total_seconds() - ideal_gap)
            for previous, current in zip(sessions, sessions[1:])
        )
        return 1.0 - min(1.0, deviation / span)

    def deadline_proximity(self, block: ScheduledBlock) -> float:
        task = self.tasks.get(block.task_id)
        if task is None or task.deadline is None:
            return NO_DEADLINE_SCORE
        days_until = (task.deadline - block.start).total_seconds() / SECONDS_PER_DAY
        if days_until < 0:
            return OVERDUE_SCORE
        score = 1.0 - (days_until / DEADLINE_HORIZON_DAYS) * 0.8
        return max(DEADLINE_FLOOR, min(1.0, score))

    def score_block(
        self, block: ScheduledBlock, assignment: Sequence[ScheduledBlock]
    ) -> float:
        weights = self.weights
        return (
            self.energy_alignment(block) * weights.energy
            + self.complexity_alignment(block) * weights.complexity
            + self.distribution_score(block, assignment) * weights.distribution
            + self.deadline_proximity(block) * weights.deadline
        )

    def score(self, assignment: Sequence[ScheduledBlock]) -> float:
        if not assignment:
            return 0.0
        total = sum(self.score_block(block, assignment) for block in assignment)
        return total / len(assignment)
