"""
Genetic search over assignments of flexible tasks to free time.

Population initialization, tournament selection, per-task uniform crossover,
three-way mutation and conflict repair. All randomness flows from one
``random.Random`` so a fixed seed replays the same search.
"""

from __future__ import annotations

import concurrent.futures
import logging
import random
import threading
import time as time_module
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TypeVar

from .availability import commitments_by_day, compute_available_slots, free_slots_for_day
from .config import GeneticConfig
from .energy import EnergyMatrix
from .fitness import FitnessEvaluator
from .intervals import TimeInterval, day_bounds
from .models import (
    Candidate,
    FixedCommitment,
    FlexibleTask,
    ScheduledBlock,
    SchedulingWindow,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class SearchOutcome:
    best: Candidate
    status: str = "COMPLETED"
    generations_run: int = 0
    fitness_history: list[float] = field(default_factory=list)


class GeneticScheduler:
    """Evolves conflict-free weekly assignments for a fixed set of inputs."""

    def __init__(
        self,
        fixed_commitments: Sequence[FixedCommitment],
        tasks: Sequence[FlexibleTask],
        energy_matrix: EnergyMatrix,
        window: SchedulingWindow,
        config: GeneticConfig | None = None,
        *,
        rng: random.Random | None = None,
        evaluator: FitnessEvaluator | None = None,
    ):
        self.config = config or GeneticConfig()
        self.rng = rng if rng is not None else random.Random(self.config.random_seed)
        self.fixed_commitments = list(fixed_commitments)
        self.tasks = list(tasks)
        self.window = window
        self.evaluator = evaluator or FitnessEvaluator(
            energy_matrix, self.tasks, self.config.weights
        )
        self.busy_by_day = commitments_by_day(self.fixed_commitments)
        self.available_slots = compute_available_slots(window, self.fixed_commitments)
        self._executor: concurrent.futures.Executor | None = None

    # -- helpers ---------------------------------------------------------

    def session_duration(self, task: FlexibleTask) -> timedelta:
        hours = task.session_hours or self.config.default_session_hours
        return timedelta(hours=hours)

    def _map(self, fn: Callable[[T], R], items: Iterable[T]) -> list[R]:
        # executor.map yields results in submission order.
        if self._executor is None:
            return [fn(item) for item in items]
        return list(self._executor.map(fn, items))

    @staticmethod
    def _rank(population: list[Candidate]) -> list[Candidate]:
        # Stable: equal fitness keeps elites ahead of newer children.
        return sorted(population, key=lambda candidate: candidate.fitness, reverse=True)

    def unscheduled_tasks(self, assignment: Sequence[ScheduledBlock]) -> list[str]:
        """Ids of tasks holding fewer blocks than the sessions they need."""
        placed = Counter(block.task_id for block in assignment)
        return [task.id for task in self.tasks if placed[task.id] < task.sessions]

    # -- initialization --------------------------------------------------

    def random_assignment(self, rng: random.Random) -> list[ScheduledBlock]:
        """Place sessions at the start of random free slots until none fit."""
        # A fresh list per candidate; intervals themselves are immutable.
        slots = list(self.available_slots)
        pending = [task for task in self.tasks for _ in range(task.sessions)]
        min_remaining = timedelta(hours=self.config.min_slot_hours)
        blocks: list[ScheduledBlock] = []

        while pending and slots:
            task = pending.pop(rng.randrange(len(pending)))
            duration = self.session_duration(task)
            fitting = [i for i, slot in enumerate(slots) if slot.duration >= duration]
            if not fitting:
                continue

            index = rng.choice(fitting)
            slot = slots[index]
            end = slot.start + duration
            blocks.append(
                ScheduledBlock(
                    task_id=task.id,
                    start=slot.start,
                    end=end,
                    title=task.title,
                    category=task.category,
                )
            )
            if slot.end - end < min_remaining:
                del slots[index]
            else:
                slots[index] = TimeInterval(end, slot.end)

        return blocks

    def _seeded_candidate(self, seed: int) -> Candidate:
        assignment = self.random_assignment(random.Random(seed))
        return Candidate(assignment=assignment, fitness=self.evaluator.score(assignment))

    def initialize_population(self) -> list[Candidate]:
        # Seeds are drawn in candidate order so pooled construction stays reproducible.
        seeds = [self.rng.getrandbits(64) for _ in range(self.config.population_size)]
        return self._rank(self._map(self._seeded_candidate, seeds))

    # -- repair ----------------------------------------------------------

    def _relocate(
        self, block: ScheduledBlock, accepted: Sequence[ScheduledBlock]
    ) -> ScheduledBlock | None:
        occupied = [other.interval for other in accepted if other.day == block.day]
        free = free_slots_for_day(
            block.day, self.busy_by_day, tz=block.start.tzinfo, occupied=occupied
        )
        duration = block.duration
        for slot in free:
            if slot.duration >= duration:
                return block.moved(slot.start, slot.start + duration)
        return None

    def resolve_conflicts(
        self, assignment: Iterable[ScheduledBlock]
    ) -> tuple[list[ScheduledBlock], list[str]]:
        """Remove overlaps by relocating or dropping blocks.

        Blocks are visited in start order. A block clashing with an accepted
        block or a commitment of its day moves to the earliest free slot of
        that day that fits its duration, or is dropped. Returns the repaired
        assignment sorted by start and the task ids of dropped blocks.
        """
        accepted: list[ScheduledBlock] = []
        dropped: list[str] = []
        for block in sorted(assignment, key=lambda b: b.start):
            busy = self.busy_by_day.get(block.day, ())
            clash = any(block.overlaps(other) for other in accepted) or any(
                block.overlaps(interval) for interval in busy
            )
            if not clash:
                accepted.append(block)
                continue

            relocated = self._relocate(block, accepted)
            if relocated is None:
                logger.debug(
                    f"Dropped block for task {block.task_id} on {block.day}: no free slot"
                )
                dropped.append(block.task_id)
            else:
                accepted.append(relocated)

        accepted.sort(key=lambda b: b.start)
        return accepted, dropped

    # -- genetic operators -----------------------------------------------

    def select(self, population: Sequence[Candidate]) -> Candidate:
        """Tournament selection, contenders drawn with replacement."""
        best = population[self.rng.randrange(len(population))]
        for _ in range(self.config.tournament_size - 1):
            contender = population[self.rng.randrange(len(population))]
            if contender.fitness > best.fitness:
                best = contender
        return best

    def crossover(
        self, parent_a: Candidate, parent_b: Candidate
    ) -> tuple[list[ScheduledBlock], list[ScheduledBlock]]:
        """Per-task uniform crossover; unresolved children.

        Tasks held by one parent only pass to both children. For tasks held by
        both, each session position goes to one child or the other at random.
        """
        if self.rng.random() >= self.config.crossover_rate:
            return list(parent_a.assignment), list(parent_b.assignment)

        blocks_a = _group_by_task(parent_a.assignment)
        blocks_b = _group_by_task(parent_b.assignment)
        child_a: list[ScheduledBlock] = []
        child_b: list[ScheduledBlock] = []

        for task_id in dict.fromkeys([*blocks_a, *blocks_b]):
            from_a = blocks_a.get(task_id, [])
            from_b = blocks_b.get(task_id, [])
            if not from_a or not from_b:
                inherited = from_a or from_b
                child_a.extend(inherited)
                child_b.extend(inherited)
                continue

            for position in range(max(len(from_a), len(from_b))):
                first, second = (from_a, from_b) if self.rng.random() < 0.5 else (from_b, from_a)
                if position < len(first):
                    child_a.append(first[position])
                if position < len(second):
                    child_b.append(second[position])

        return child_a, child_b

    def mutate(
        self, assignment: Sequence[ScheduledBlock]
    ) -> tuple[list[ScheduledBlock], bool]:
        """Shift (50%), resize (25%) or swap (25%) one random block.

        Returns the possibly changed assignment and whether a mutation was
        attempted. Shifts and resizes that would leave the block's day are
        rejected.
        """
        blocks = list(assignment)
        if not blocks or self.rng.random() >= self.config.mutation_rate:
            return blocks, False

        index = self.rng.randrange(len(blocks))
        block = blocks[index]
        bounds = day_bounds(block.day, block.start.tzinfo)
        roll = self.rng.random()

        if roll < 0.5:
            limit = self.config.mutation_shift_hours
            shift = timedelta(hours=self.rng.uniform(-limit, limit))
            start, end = block.start + shift, block.end + shift
            if start >= bounds.start and end <= bounds.end:
                blocks[index] = block.moved(start, end)
        elif roll < 0.75:
            limit = self.config.mutation_duration_minutes
            change = timedelta(minutes=self.rng.uniform(-limit, limit))
            duration = max(timedelta(hours=self.config.min_session_hours), block.duration + change)
            end = block.start + duration
            if end <= bounds.end:
                blocks[index] = block.moved(block.start, end)
        elif len(blocks) > 1:
            other_index = self.rng.randrange(len(blocks) - 1)
            if other_index >= index:
                other_index += 1
            other = blocks[other_index]
            blocks[index] = block.moved(other.start, other.end)
            blocks[other_index] = other.moved(block.start, block.end)

        return blocks, True

    def _breed(
        self, parent_a: Candidate, parent_b: Candidate
    ) -> tuple[list[ScheduledBlock], list[ScheduledBlock]]:
        children = []
        for child in self.crossover(parent_a, parent_b):
            repaired, _ = self.resolve_conflicts(child)
            mutated, changed = self.mutate(repaired)
            if changed:
                repaired, _ = self.resolve_conflicts(mutated)
            children.append(repaired)
        return children[0], children[1]

    def _score(self, assignment: list[ScheduledBlock]) -> Candidate:
        return Candidate(assignment=assignment, fitness=self.evaluator.score(assignment))

    # -- main loop -------------------------------------------------------

    def next_generation(self, population: Sequence[Candidate]) -> list[Candidate]:
        size = self.config.population_size
        elites = list(population[: self.config.elitism_count])
        offspring: list[list[ScheduledBlock]] = []
        while len(elites) + len(offspring) < size:
            parent_a = self.select(population)
            parent_b = self.select(population)
            child_a, child_b = self._breed(parent_a, parent_b)
            offspring.append(child_a)
            if len(elites) + len(offspring) < size:
                offspring.append(child_b)
        return self._rank(elites + self._map(self._score, offspring))

    def run(self, cancel_event: threading.Event | None = None) -> SearchOutcome:
        """Evolve for the configured generations and return the best candidate.

        ``cancel_event`` and ``max_time_in_seconds`` are checked between
        generations; either stops the search with the best candidate so far.
        """
        config = self.config
        started = time_module.perf_counter()
        logger.info(
            f"Starting genetic search: {len(self.tasks)} tasks, "
            f"{len(self.available_slots)} free slots, population {config.population_size}, "
            f"{config.generations} generations"
        )

        if config.max_workers > 1:
            self._executor = concurrent.futures.ThreadPoolExecutor(
                max_workers=config.max_workers
            )
        try:
            population = self.initialize_population()
            outcome = SearchOutcome(
                best=population[0], fitness_history=[population[0].fitness]
            )

            for generation in range(config.generations):
                if cancel_event is not None and cancel_event.is_set():
                    outcome.status = "CANCELLED"
                    logger.warning(f"Search cancelled after {generation} generations")
                    break
                elapsed = time_module.perf_counter() - started
                if (
                    config.max_time_in_seconds is not None
                    and elapsed >= config.max_time_in_seconds
                ):
                    outcome.status = "DEADLINE_REACHED"
                    logger.warning(
                        f"Time limit of {config.max_time_in_seconds}s reached "
                        f"after {generation} generations"
                    )
                    break

                population = self.next_generation(population)
                outcome.generations_run += 1
                outcome.fitness_history.append(population[0].fitness)
                logger.debug(
                    f"Generation {generation + 1}: best fitness {population[0].fitness:.4f}"
                )
        finally:
            if self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None

        outcome.best = population[0]
        logger.info(
            f"Genetic search finished ({outcome.status}) in "
            f"{time_module.perf_counter() - started:.2f}s, best fitness {outcome.best.fitness:.4f}"
        )
        return outcome


def _group_by_task(assignment: Iterable[ScheduledBlock]) -> dict[str, list[ScheduledBlock]]:
    grouped: dict[str, list[ScheduledBlock]] = {}
    for block in assignment:
        grouped.setdefault(block.task_id, []).append(block)
    return grouped
