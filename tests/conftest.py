from datetime import date, datetime

import pytest

from energy_scheduler.config import GeneticConfig
from energy_scheduler.models import (
    ActivityCategory,
    Complexity,
    FixedCommitment,
    FlexibleTask,
    Priority,
    SchedulingWindow,
)

# 2025-06-23 is a Monday.
MONDAY = date(2025, 6, 23)


@pytest.fixture
def monday() -> date:
    return MONDAY


@pytest.fixture
def small_config() -> GeneticConfig:
    """Fast, deterministic engine settings for tests."""
    return GeneticConfig(
        population_size=12,
        generations=8,
        elitism_count=2,
        max_workers=1,
        random_seed=42,
    )


@pytest.fixture
def work_shift() -> FixedCommitment:
    return FixedCommitment(
        id="work",
        title="Work shift",
        category=ActivityCategory.WORK,
        start=datetime(2025, 6, 23, 9, 0),
        end=datetime(2025, 6, 23, 17, 0),
    )


@pytest.fixture
def week_window() -> SchedulingWindow:
    return SchedulingWindow(start=MONDAY, end=date(2025, 6, 29))


@pytest.fixture
def study_tasks() -> list[FlexibleTask]:
    return [
        FlexibleTask(
            id="algebra",
            title="Linear algebra problem set",
            category=ActivityCategory.ASSIGNMENT,
            complexity=Complexity.COMPLEX,
            priority=Priority.HIGH,
            deadline=datetime(2025, 6, 25, 23, 0),
        ),
        FlexibleTask(
            id="history",
            title="History reading",
            complexity=Complexity.EASY,
            priority=Priority.LOW,
        ),
        FlexibleTask(
            id="chemistry",
            title="Chemistry revision",
            complexity=Complexity.MODERATE,
            deadline=datetime(2025, 6, 28, 12, 0),
        ),
    ]


@pytest.fixture
def class_schedule() -> list[FixedCommitment]:
    """Weekday classes plus a work shift."""
    commitments = []
    for offset in range(5):
        day = 23 + offset
        commitments.append(
            FixedCommitment(
                id=f"class-{day}",
                title="Lectures",
                category=ActivityCategory.CLASS,
                start=datetime(2025, 6, day, 9, 0),
                end=datetime(2025, 6, day, 13, 0),
            )
        )
    commitments.append(
        FixedCommitment(
            id="shift-28",
            title="Cafe shift",
            category=ActivityCategory.WORK,
            start=datetime(2025, 6, 28, 10, 0),
            end=datetime(2025, 6, 28, 18, 0),
        )
    )
    return commitments
