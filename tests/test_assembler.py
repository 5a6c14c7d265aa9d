"""
Tests for day schedule assembly.
"""

from datetime import date, datetime, timedelta

from energy_scheduler.assembler import assemble_day_schedules
from energy_scheduler.models import ActivityCategory, ScheduledBlock


def make_block(task_id: str, start: datetime) -> ScheduledBlock:
    return ScheduledBlock(
        task_id=task_id,
        start=start,
        end=start + timedelta(hours=2),
        title=task_id,
        category=ActivityCategory.STUDY,
    )


class TestAssembleDaySchedules:
    """Test cases for grouping blocks into days."""

    def test_groups_by_day_and_sorts(self, work_shift):
        blocks = [
            make_block("late", datetime(2025, 6, 23, 19)),
            make_block("tuesday", datetime(2025, 6, 24, 8)),
            make_block("early", datetime(2025, 6, 23, 6)),
        ]
        days = assemble_day_schedules(blocks, [work_shift])

        assert [day.date for day in days] == [date(2025, 6, 23), date(2025, 6, 24)]
        assert [b.task_id for b in days[0].blocks] == ["early", "work", "late"]
        assert [b.task_id for b in days[1].blocks] == ["tuesday"]

    def test_commitments_are_marked_fixed(self, work_shift):
        days = assemble_day_schedules([make_block("a", datetime(2025, 6, 23, 6))], [work_shift])
        fixed = {b.task_id: b.is_fixed for b in days[0].blocks}
        assert fixed == {"a": False, "work": True}
        assert days[0].blocks[1].category == ActivityCategory.WORK

    def test_empty_inputs(self):
        assert assemble_day_schedules([], []) == []

    def test_commitments_only(self, class_schedule):
        days = assemble_day_schedules([], class_schedule)
        assert len(days) == 6
        assert all(block.is_fixed for day in days for block in day.blocks)
