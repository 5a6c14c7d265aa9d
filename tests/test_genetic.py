"""
Tests for the genetic search engine.
"""

import random
import threading
from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from energy_scheduler.energy import EnergyMatrix
from energy_scheduler.genetic import GeneticScheduler
from energy_scheduler.models import (
    ActivityCategory,
    Candidate,
    FlexibleTask,
    ScheduledBlock,
    SchedulingWindow,
)


def make_block(task_id: str, start: datetime, hours: float = 2.0) -> ScheduledBlock:
    return ScheduledBlock(
        task_id=task_id,
        start=start,
        end=start + timedelta(hours=hours),
        title=task_id.title(),
        category=ActivityCategory.STUDY,
    )


def assert_conflict_free(blocks, commitments):
    ordered = sorted(blocks, key=lambda b: b.start)
    for previous, current in zip(ordered, ordered[1:]):
        assert previous.end <= current.start
    for block in blocks:
        for commitment in commitments:
            assert not block.overlaps(commitment.interval)


@pytest.fixture
def scheduler(class_schedule, study_tasks, week_window, small_config):
    return GeneticScheduler(
        class_schedule,
        study_tasks,
        EnergyMatrix.uniform(),
        week_window,
        small_config,
        rng=random.Random(7),
    )


class TestInitialization:
    """Test cases for random candidate construction."""

    def test_random_assignment_places_every_task(self, scheduler, class_schedule):
        blocks = scheduler.random_assignment(random.Random(1))
        assert sorted(b.task_id for b in blocks) == ["algebra", "chemistry", "history"]
        assert all(b.duration == timedelta(hours=2) for b in blocks)
        assert_conflict_free(blocks, class_schedule)

    def test_candidates_do_not_share_slot_state(self, scheduler):
        """Building one candidate leaves the free slots intact for the next."""
        before = list(scheduler.available_slots)
        scheduler.random_assignment(random.Random(1))
        scheduler.random_assignment(random.Random(2))
        assert scheduler.available_slots == before

    def test_same_seed_same_assignment(self, scheduler):
        assert scheduler.random_assignment(random.Random(5)) == scheduler.random_assignment(
            random.Random(5)
        )

    def test_population_is_ranked(self, scheduler, small_config):
        population = scheduler.initialize_population()
        assert len(population) == small_config.population_size
        fitness = [candidate.fitness for candidate in population]
        assert fitness == sorted(fitness, reverse=True)

    def test_session_overrides(self, monday, small_config):
        task = FlexibleTask(id="essay", title="Essay", session_hours=1.5, sessions=3)
        window = SchedulingWindow(start=monday, end=monday)
        engine = GeneticScheduler([], [task], EnergyMatrix.uniform(), window, small_config)
        blocks = engine.random_assignment(random.Random(3))
        assert len(blocks) == 3
        assert all(b.duration == timedelta(hours=1.5) for b in blocks)

    def test_oversized_session_is_skipped(self, monday, work_shift, small_config):
        task = FlexibleTask(id="marathon", title="Marathon", session_hours=12)
        window = SchedulingWindow(start=monday, end=monday)
        engine = GeneticScheduler(
            [work_shift], [task], EnergyMatrix.uniform(), window, small_config
        )
        blocks = engine.random_assignment(random.Random(3))
        assert blocks == []
        assert engine.unscheduled_tasks(blocks) == ["marathon"]

    def test_partially_placed_task_is_unscheduled(self, scheduler):
        scheduler.tasks = [FlexibleTask(id="t", title="T", sessions=2)]
        assert scheduler.unscheduled_tasks([make_block("t", datetime(2025, 6, 23, 14))]) == ["t"]


class TestConflictResolution:
    """Test cases for overlap repair."""

    def test_conflict_free_assignment_is_kept(self, monday, small_config):
        window = SchedulingWindow(start=monday, end=monday)
        engine = GeneticScheduler([], [], EnergyMatrix.uniform(), window, small_config)
        blocks = [make_block("b", datetime(2025, 6, 23, 14)), make_block("a", datetime(2025, 6, 23, 9))]
        resolved, dropped = engine.resolve_conflicts(blocks)
        assert resolved == sorted(blocks, key=lambda b: b.start)
        assert dropped == []

    def test_overlapping_block_moves_to_earliest_slot(self, monday, small_config):
        """The later-visited of two identical blocks moves to midnight."""
        window = SchedulingWindow(start=monday, end=monday)
        engine = GeneticScheduler([], [], EnergyMatrix.uniform(), window, small_config)
        first = make_block("a", datetime(2025, 6, 23, 9))
        second = make_block("b", datetime(2025, 6, 23, 9))

        resolved, dropped = engine.resolve_conflicts([first, second])

        assert dropped == []
        assert resolved[0].task_id == "b"
        assert resolved[0].start == datetime(2025, 6, 23, 0, 0)
        assert resolved[0].end == datetime(2025, 6, 23, 2, 0)
        assert resolved[1] == first

    def test_block_clashing_with_commitment_is_relocated(self, monday, work_shift, small_config):
        window = SchedulingWindow(start=monday, end=monday)
        engine = GeneticScheduler([work_shift], [], EnergyMatrix.uniform(), window, small_config)
        resolved, dropped = engine.resolve_conflicts([make_block("a", datetime(2025, 6, 23, 10))])
        assert dropped == []
        assert resolved[0].start == datetime(2025, 6, 23, 0, 0)
        assert_conflict_free(resolved, [work_shift])

    def test_block_without_room_is_dropped(self, monday, work_shift, small_config):
        window = SchedulingWindow(start=monday, end=monday)
        engine = GeneticScheduler([work_shift], [], EnergyMatrix.uniform(), window, small_config)
        too_long = make_block("long", datetime(2025, 6, 23, 0), hours=20)
        resolved, dropped = engine.resolve_conflicts([too_long])
        assert resolved == []
        assert dropped == ["long"]


class TestOperators:
    """Test cases for selection, crossover and mutation."""

    def test_tournament_prefers_fitter(self, scheduler):
        weak = Candidate(assignment=[], fitness=0.1)
        strong = Candidate(assignment=[], fitness=0.9)
        scheduler.config = replace(scheduler.config, tournament_size=200)
        assert scheduler.select([weak, strong]) is strong

    def test_tournament_of_one_returns_population_member(self, scheduler):
        population = [Candidate(fitness=f) for f in (0.1, 0.2, 0.3)]
        scheduler.config = replace(scheduler.config, tournament_size=1)
        assert scheduler.select(population) in population

    def test_no_crossover_returns_clones(self, scheduler):
        scheduler.config = replace(scheduler.config, crossover_rate=0.0)
        a = Candidate(scheduler.random_assignment(random.Random(1)))
        b = Candidate(scheduler.random_assignment(random.Random(2)))
        child_a, child_b = scheduler.crossover(a, b)
        assert child_a == a.assignment
        assert child_b == b.assignment
        assert child_a is not a.assignment

    def test_crossover_distributes_each_task(self, scheduler):
        """Every task ends up in both children, one parent's block each."""
        scheduler.config = replace(scheduler.config, crossover_rate=1.0)
        a = Candidate(scheduler.random_assignment(random.Random(1)))
        b = Candidate(scheduler.random_assignment(random.Random(2)))
        child_a, child_b = scheduler.crossover(a, b)

        for task_id in ("algebra", "history", "chemistry"):
            from_a = next(x for x in a.assignment if x.task_id == task_id)
            from_b = next(x for x in b.assignment if x.task_id == task_id)
            got_a = [x for x in child_a if x.task_id == task_id]
            got_b = [x for x in child_b if x.task_id == task_id]
            assert len(got_a) == len(got_b) == 1
            assert {got_a[0], got_b[0]} == {from_a, from_b}

    def test_single_parent_task_goes_to_both_children(self, scheduler):
        scheduler.config = replace(scheduler.config, crossover_rate=1.0)
        extra = make_block("extra", datetime(2025, 6, 29, 8))
        a = Candidate([extra])
        b = Candidate([])
        child_a, child_b = scheduler.crossover(a, b)
        assert child_a == [extra]
        assert child_b == [extra]

    def test_zero_mutation_rate_leaves_assignment(self, scheduler):
        scheduler.config = replace(scheduler.config, mutation_rate=0.0)
        blocks = scheduler.random_assignment(random.Random(1))
        mutated, changed = scheduler.mutate(blocks)
        assert mutated == blocks
        assert changed is False

    def test_mutation_keeps_blocks_within_a_day(self, scheduler, small_config):
        scheduler.config = replace(small_config, mutation_rate=1.0)
        blocks = scheduler.random_assignment(random.Random(1))
        for _ in range(200):
            blocks, changed = scheduler.mutate(blocks)
            assert changed is True
            for block in blocks:
                assert block.start < block.end
                assert block.start.date() == block.end.date()
                assert block.duration >= timedelta(hours=1)


class TestSearch:
    """Test cases for the generational loop."""

    def test_run_produces_conflict_free_best(self, scheduler, class_schedule, small_config):
        outcome = scheduler.run()
        assert outcome.status == "COMPLETED"
        assert outcome.generations_run == small_config.generations
        assert len(outcome.fitness_history) == small_config.generations + 1
        assert_conflict_free(outcome.best.assignment, class_schedule)

    def test_elitism_never_loses_best_fitness(self, scheduler):
        history = scheduler.run().fitness_history
        assert all(later >= earlier for earlier, later in zip(history, history[1:]))

    def test_seeded_runs_are_reproducible(
        self, class_schedule, study_tasks, week_window, small_config
    ):
        def run(config):
            engine = GeneticScheduler(
                class_schedule, study_tasks, EnergyMatrix.uniform(), week_window, config
            )
            return engine.run()

        first = run(small_config)
        second = run(small_config)
        assert first.best.assignment == second.best.assignment
        assert first.fitness_history == second.fitness_history

    def test_worker_pool_does_not_change_result(
        self, class_schedule, study_tasks, week_window, small_config
    ):
        """Pooled scoring returns the same search as serial scoring."""
        outcomes = []
        for workers in (1, 4):
            config = replace(small_config, max_workers=workers)
            engine = GeneticScheduler(
                class_schedule, study_tasks, EnergyMatrix.uniform(), week_window, config
            )
            outcomes.append(engine.run())
        assert outcomes[0].best.assignment == outcomes[1].best.assignment
        assert outcomes[0].fitness_history == outcomes[1].fitness_history

    def test_cancelled_before_first_generation(self, scheduler):
        cancel = threading.Event()
        cancel.set()
        outcome = scheduler.run(cancel_event=cancel)
        assert outcome.status == "CANCELLED"
        assert outcome.generations_run == 0
        assert outcome.best.assignment

    def test_time_limit_stops_search(self, scheduler, small_config):
        scheduler.config = replace(small_config, max_time_in_seconds=1e-9)
        outcome = scheduler.run()
        assert outcome.status == "DEADLINE_REACHED"
        assert outcome.generations_run == 0

    def test_zero_generations_returns_initial_best(self, scheduler, small_config):
        scheduler.config = replace(small_config, generations=0)
        outcome = scheduler.run()
        assert outcome.status == "COMPLETED"
        assert outcome.fitness_history == [outcome.best.fitness]
