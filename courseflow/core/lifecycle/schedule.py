# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Deterministic lesson schedule generation.

Turns a start date, a cadence and the ordered list of selected modules into
a fully dated lesson sequence. The generator is pure: it never reads or
writes the store; CourseService persists the result.

Rules:
- The first lesson is "Introduction" and the last is "Conclusion", both
  without module. A single lesson is "Introduction".
- Interior lesson i takes selected_modules[(i - 2) % len(selected_modules)],
  or the generic "Lesson i" title when no modules are supplied.
- With skip_weekends, a date falling on Saturday or Sunday moves forward
  one day at a time until it reaches a weekday. The cadence step is then
  applied from the shifted date.

Example:
    >>> lessons = generate_schedule(
    ...     start_date=date(2024, 1, 1),
    ...     frequency=ScheduleFrequency.WEEKLY,
    ...     time_of_day=time(10, 0),
    ...     skip_weekends=True,
    ...     count=3,
    ...     selected_modules=[],
    ... )
    >>> [lesson.title for lesson in lessons]
    ['Introduction', 'Lesson 2', 'Conclusion']
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum
from typing import Protocol

INTRODUCTION_TITLE = "Introduction"
CONCLUSION_TITLE = "Conclusion"

# Monday=0 ... Sunday=6
_WEEKEND = (5, 6)


class ScheduleFrequency(str, Enum):
    """Lesson cadence."""

    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"

    @property
    def step_days(self) -> int:
        """Days between consecutive lessons."""
        return _STEP_DAYS[self]


_STEP_DAYS = {
    ScheduleFrequency.DAILY: 1,
    ScheduleFrequency.WEEKLY: 7,
    ScheduleFrequency.BIWEEKLY: 14,
}


class SchedulableModule(Protocol):
    """Anything with an id and a title, e.g. a Module row."""

    id: str
    title: str


@dataclass(frozen=True)
class LessonDescriptor:
    """An in-memory, not yet persisted lesson.

    Attributes:
        lesson_number: 1-based position in the course.
        title: Lesson title.
        scheduled_at: Absolute start time.
        duration: Length in minutes.
        module_id: Linked module, None for introduction/conclusion.
    """

    lesson_number: int
    title: str
    scheduled_at: datetime
    duration: int
    module_id: str | None = None


def skip_to_weekday(day: date) -> date:
    """Move a date forward one day at a time until it is Mon-Fri."""
    while day.weekday() in _WEEKEND:
        day += timedelta(days=1)
    return day


def generate_schedule(
    start_date: date,
    frequency: ScheduleFrequency | str,
    time_of_day: time,
    skip_weekends: bool,
    count: int,
    selected_modules: Sequence[SchedulableModule],
    duration: int = 60,
    tz: tzinfo | None = None,
) -> list[LessonDescriptor]:
    """Generate an ordered, dated lesson sequence.

    Args:
        start_date: Day of the first lesson (before weekend skipping).
        frequency: Cadence, daily/weekly/biweekly.
        time_of_day: Wall-clock start time; seconds are dropped.
        skip_weekends: Push weekend dates to the following Monday.
        count: Number of lessons, at least 1.
        selected_modules: Modules in assignment order.
        duration: Lesson length in minutes.
        tz: Timezone for scheduled_at. None yields naive datetimes.

    Returns:
        Lesson descriptors numbered 1..count.

    Raises:
        ValueError: If count is below 1.
    """
    if count < 1:
        raise ValueError("At least one lesson must be scheduled")

    frequency = ScheduleFrequency(frequency)
    if isinstance(start_date, datetime):
        start_date = start_date.date()
    clock = time(hour=time_of_day.hour, minute=time_of_day.minute)

    lessons: list[LessonDescriptor] = []
    cursor = start_date

    for number in range(1, count + 1):
        if skip_weekends:
            cursor = skip_to_weekday(cursor)

        module = _module_for(number, count, selected_modules)
        if number == 1:
            title = INTRODUCTION_TITLE
        elif number == count:
            title = CONCLUSION_TITLE
        elif module is not None:
            title = module.title
        else:
            title = f"Lesson {number}"

        lessons.append(
            LessonDescriptor(
                lesson_number=number,
                title=title,
                scheduled_at=datetime.combine(cursor, clock, tzinfo=tz),
                duration=duration,
                module_id=module.id if module is not None else None,
            )
        )

        cursor += timedelta(days=frequency.step_days)

    return lessons


def _module_for(
    number: int,
    count: int,
    selected_modules: Sequence[SchedulableModule],
) -> SchedulableModule | None:
    """Round-robin module for an interior lesson, None otherwise."""
    if number == 1 or number == count or not selected_modules:
        return None
    return selected_modules[(number - 2) % len(selected_modules)]
