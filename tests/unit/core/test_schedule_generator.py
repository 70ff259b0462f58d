# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for lesson schedule generation."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

import pytest

from courseflow.core.lifecycle.schedule import (
    ScheduleFrequency,
    generate_schedule,
    skip_to_weekday,
)


@dataclass
class FakeModule:
    """Module stand-in with the attributes the generator reads."""

    id: str
    title: str


MODULES = [FakeModule("m-a", "Breathing"), FakeModule("m-b", "Posture"), FakeModule("m-c", "Voice")]


def _generate(**overrides):
    params = {
        "start_date": date(2024, 1, 1),
        "frequency": ScheduleFrequency.WEEKLY,
        "time_of_day": time(10, 0),
        "skip_weekends": True,
        "count": 3,
        "selected_modules": [],
    }
    params.update(overrides)
    return generate_schedule(**params)


@pytest.mark.unit
class TestGenerateSchedule:
    """Tests for generate_schedule()."""

    def test_weekly_from_monday(self) -> None:
        """Weekly lessons from a Monday land on consecutive Mondays."""
        lessons = _generate()

        assert [lesson.scheduled_at for lesson in lessons] == [
            datetime(2024, 1, 1, 10, 0),
            datetime(2024, 1, 8, 10, 0),
            datetime(2024, 1, 15, 10, 0),
        ]
        assert [lesson.title for lesson in lessons] == ["Introduction", "Lesson 2", "Conclusion"]
        assert [lesson.lesson_number for lesson in lessons] == [1, 2, 3]
        assert all(lesson.module_id is None for lesson in lessons)

    def test_single_lesson_is_introduction(self) -> None:
        """With one lesson the introduction title wins."""
        lessons = _generate(count=1, selected_modules=MODULES)

        assert len(lessons) == 1
        assert lessons[0].title == "Introduction"
        assert lessons[0].module_id is None

    def test_two_lessons(self) -> None:
        """Two lessons are introduction and conclusion."""
        lessons = _generate(count=2, selected_modules=MODULES)

        assert [lesson.title for lesson in lessons] == ["Introduction", "Conclusion"]
        assert [lesson.module_id for lesson in lessons] == [None, None]

    def test_zero_lessons_rejected(self) -> None:
        """At least one lesson is required."""
        with pytest.raises(ValueError):
            _generate(count=0)

    def test_interior_lessons_cycle_through_modules(self) -> None:
        """Interior lesson i takes module (i - 2) mod len."""
        lessons = _generate(count=7, selected_modules=MODULES)

        assert [lesson.module_id for lesson in lessons] == [
            None, "m-a", "m-b", "m-c", "m-a", "m-b", None,
        ]
        assert [lesson.title for lesson in lessons] == [
            "Introduction", "Breathing", "Posture", "Voice", "Breathing", "Posture", "Conclusion",
        ]

    def test_weekend_start_moves_to_monday(self) -> None:
        """A Saturday start is pushed to the following Monday."""
        lessons = _generate(start_date=date(2024, 1, 6), count=2)

        assert lessons[0].scheduled_at.date() == date(2024, 1, 8)
        assert lessons[1].scheduled_at.date() == date(2024, 1, 15)

    def test_weekend_kept_when_not_skipping(self) -> None:
        """Without skipping, a Saturday start stays on Saturday."""
        lessons = _generate(start_date=date(2024, 1, 6), skip_weekends=False, count=1)

        assert lessons[0].scheduled_at.date() == date(2024, 1, 6)

    def test_daily_skips_weekend(self) -> None:
        """Daily lessons jump from Friday to Monday."""
        lessons = _generate(
            start_date=date(2024, 1, 4),
            frequency=ScheduleFrequency.DAILY,
            count=4,
        )

        assert [lesson.scheduled_at.date() for lesson in lessons] == [
            date(2024, 1, 4),
            date(2024, 1, 5),
            date(2024, 1, 8),
            date(2024, 1, 9),
        ]

    def test_biweekly(self) -> None:
        """Biweekly lessons are fourteen days apart."""
        lessons = _generate(frequency="biweekly")

        assert [lesson.scheduled_at.date() for lesson in lessons] == [
            date(2024, 1, 1),
            date(2024, 1, 15),
            date(2024, 1, 29),
        ]

    def test_seconds_are_dropped(self) -> None:
        """Only hour and minute of the time of day are used."""
        lessons = _generate(time_of_day=time(9, 30, 45), count=1)

        assert lessons[0].scheduled_at.time() == time(9, 30)

    def test_duration_is_copied(self) -> None:
        """Every lesson carries the requested duration."""
        lessons = _generate(duration=90)

        assert {lesson.duration for lesson in lessons} == {90}

    def test_weekday_property_over_many_starts(self) -> None:
        """With skipping, no lesson ever lands on a weekend."""
        for offset in range(28):
            start = date(2024, 1, 1) + timedelta(days=offset)
            for frequency in ScheduleFrequency:
                lessons = _generate(start_date=start, frequency=frequency, count=12)

                assert len(lessons) == 12
                assert all(lesson.scheduled_at.weekday() < 5 for lesson in lessons)
                times = [lesson.scheduled_at for lesson in lessons]
                assert times == sorted(times)
                assert len(set(times)) == len(times)

    def test_wall_clock_kept_across_dst(self) -> None:
        """Lessons keep their local time when daylight saving starts."""
        rome = ZoneInfo("Europe/Rome")
        lessons = _generate(start_date=date(2024, 3, 18), count=3, tz=rome)

        assert [lesson.scheduled_at.hour for lesson in lessons] == [10, 10, 10]
        assert lessons[0].scheduled_at.utcoffset() == timedelta(hours=1)
        assert lessons[2].scheduled_at.utcoffset() == timedelta(hours=2)

    def test_deterministic(self) -> None:
        """Identical input yields identical output."""
        assert _generate(count=9, selected_modules=MODULES) == _generate(
            count=9, selected_modules=MODULES
        )


@pytest.mark.unit
class TestSkipToWeekday:
    """Tests for skip_to_weekday()."""

    def test_weekday_unchanged(self) -> None:
        """Weekdays are returned as is."""
        assert skip_to_weekday(date(2024, 1, 3)) == date(2024, 1, 3)

    def test_sunday_moves_to_monday(self) -> None:
        """Sunday moves one day forward."""
        assert skip_to_weekday(date(2024, 1, 7)) == date(2024, 1, 8)


@pytest.mark.unit
def test_frequency_step_days() -> None:
    """Each cadence maps to its day step."""
    assert ScheduleFrequency.DAILY.step_days == 1
    assert ScheduleFrequency.WEEKLY.step_days == 7
    assert ScheduleFrequency.BIWEEKLY.step_days == 14
