# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Precondition guards attached to (entity kind, target state) pairs.

Guards run only after the transition table accepted a request. They read
aggregate counts that the caller already loaded into a GuardContext and
never touch the store themselves.

Usage:
    registry = build_default_guards(min_topics_for_course=10)
    failure = registry.evaluate(
        EntityKind.COURSE,
        CourseStatus.DRAFT,
        CourseStatus.TOPIC_VOTING,
        GuardContext(module_count=4),
    )
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from courseflow.core.lifecycle.errors import ReasonCode
from courseflow.core.lifecycle.states import (
    CourseStatus,
    EnrollmentStatus,
    EntityKind,
    SEAT_HOLDING_STATUSES,
)


@dataclass(frozen=True)
class GuardContext:
    """Pre-loaded aggregates a guard may inspect.

    Attributes:
        module_count: Modules attached to the course.
        lesson_count: Lessons scheduled for the course.
        active_enrollments: Seat-holding enrollments of the course, not
            counting the entity being transitioned.
        max_students: Course capacity, None when unbounded.
    """

    module_count: int = 0
    lesson_count: int = 0
    active_enrollments: int = 0
    max_students: int | None = None


@dataclass(frozen=True)
class GuardFailure:
    """Outcome of a guard that refused a transition."""

    reason: ReasonCode
    message: str


Guard = Callable[[GuardContext, Enum], GuardFailure | None]


class GuardRegistry:
    """Ordered guard chains keyed by entity kind and target state."""

    def __init__(self) -> None:
        self._guards: dict[tuple[EntityKind, Enum], list[Guard]] = {}

    def register(self, entity_kind: EntityKind, target_state: Enum, guard: Guard) -> None:
        """Append a guard to the chain for a target state."""
        self._guards.setdefault((entity_kind, target_state), []).append(guard)

    def guards_for(self, entity_kind: EntityKind, target_state: Enum) -> tuple[Guard, ...]:
        """Get the guard chain for a target state in declaration order."""
        return tuple(self._guards.get((entity_kind, target_state), ()))

    def evaluate(
        self,
        entity_kind: EntityKind,
        current_state: Enum,
        target_state: Enum,
        context: GuardContext,
    ) -> GuardFailure | None:
        """Run the guard chain, stopping at the first failure.

        Returns:
            The first failure, or None when every guard passed.
        """
        for guard in self.guards_for(entity_kind, target_state):
            failure = guard(context, current_state)
            if failure is not None:
                return failure
        return None


def min_modules_guard(min_topics_for_course: int) -> Guard:
    """Build the guard requiring enough modules before voting opens."""

    def guard(context: GuardContext, current_state: Enum) -> GuardFailure | None:
        if context.module_count < min_topics_for_course:
            return GuardFailure(
                ReasonCode.INSUFFICIENT_MODULES,
                f"At least {min_topics_for_course} modules required for topic voting",
            )
        return None

    return guard


def has_lessons_guard(context: GuardContext, current_state: Enum) -> GuardFailure | None:
    """Require at least one scheduled lesson before a course starts."""
    if context.lesson_count < 1:
        return GuardFailure(
            ReasonCode.NO_LESSONS,
            "Course must have scheduled lessons before starting",
        )
    return None


def seat_available_guard(context: GuardContext, current_state: Enum) -> GuardFailure | None:
    """Require a free seat when an enrollment starts holding one again."""
    if current_state in SEAT_HOLDING_STATUSES or context.max_students is None:
        return None
    if context.active_enrollments >= context.max_students:
        return GuardFailure(ReasonCode.COURSE_FULL, "Course is at maximum capacity")
    return None


def build_default_guards(min_topics_for_course: int) -> GuardRegistry:
    """Create the registry with the standard lifecycle guards.

    Args:
        min_topics_for_course: Module threshold for opening topic voting.

    Returns:
        Populated guard registry.
    """
    registry = GuardRegistry()
    registry.register(
        EntityKind.COURSE,
        CourseStatus.TOPIC_VOTING,
        min_modules_guard(min_topics_for_course),
    )
    registry.register(EntityKind.COURSE, CourseStatus.IN_PROGRESS, has_lessons_guard)
    registry.register(EntityKind.ENROLLMENT, EnrollmentStatus.ACTIVE, seat_available_guard)
    return registry
