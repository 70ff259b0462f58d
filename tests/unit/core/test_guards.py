# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for precondition guards."""

import pytest

from courseflow.core.config.settings import VotingSettings
from courseflow.core.lifecycle.errors import ReasonCode
from courseflow.core.lifecycle.guards import (
    GuardContext,
    GuardFailure,
    GuardRegistry,
    build_default_guards,
    has_lessons_guard,
    min_modules_guard,
    seat_available_guard,
)
from courseflow.core.lifecycle.states import (
    CourseStatus,
    EnrollmentStatus,
    EntityKind,
    LessonStatus,
)
from courseflow.core.lifecycle.validator import StatusTransitionValidator


@pytest.mark.unit
class TestGuardFunctions:
    """Tests for the individual guards."""

    def test_min_modules_boundary(self) -> None:
        """Exactly the minimum passes, one less fails."""
        guard = min_modules_guard(10)

        assert guard(GuardContext(module_count=10), CourseStatus.DRAFT) is None
        failure = guard(GuardContext(module_count=9), CourseStatus.DRAFT)
        assert failure.reason == ReasonCode.INSUFFICIENT_MODULES
        assert "10" in failure.message

    def test_has_lessons(self) -> None:
        """A course needs one lesson to start."""
        assert has_lessons_guard(GuardContext(lesson_count=1), CourseStatus.SCHEDULED) is None
        failure = has_lessons_guard(GuardContext(lesson_count=0), CourseStatus.SCHEDULED)
        assert failure.reason == ReasonCode.NO_LESSONS

    def test_seat_available_for_suspended(self) -> None:
        """Reactivation needs a free seat."""
        full = GuardContext(active_enrollments=10, max_students=10)
        free = GuardContext(active_enrollments=9, max_students=10)

        assert seat_available_guard(full, EnrollmentStatus.SUSPENDED).reason == ReasonCode.COURSE_FULL
        assert seat_available_guard(free, EnrollmentStatus.SUSPENDED) is None

    def test_seat_available_for_seat_holder(self) -> None:
        """PENDING already holds a seat, so activation never overbooks."""
        full = GuardContext(active_enrollments=10, max_students=10)

        assert seat_available_guard(full, EnrollmentStatus.PENDING) is None

    def test_seat_available_unbounded(self) -> None:
        """Without a known capacity the guard passes."""
        assert seat_available_guard(GuardContext(active_enrollments=99), EnrollmentStatus.SUSPENDED) is None


@pytest.mark.unit
class TestGuardRegistry:
    """Tests for guard registration and evaluation."""

    def test_short_circuits_in_declaration_order(self) -> None:
        """The first failing guard wins and later guards do not run."""
        calls = []

        def first(context, current_state):
            calls.append("first")
            return GuardFailure(ReasonCode.NO_LESSONS, "first")

        def second(context, current_state):
            calls.append("second")
            return GuardFailure(ReasonCode.COURSE_FULL, "second")

        registry = GuardRegistry()
        registry.register(EntityKind.COURSE, CourseStatus.IN_PROGRESS, first)
        registry.register(EntityKind.COURSE, CourseStatus.IN_PROGRESS, second)

        failure = registry.evaluate(
            EntityKind.COURSE,
            CourseStatus.SCHEDULED,
            CourseStatus.IN_PROGRESS,
            GuardContext(),
        )

        assert failure.reason == ReasonCode.NO_LESSONS
        assert calls == ["first"]

    def test_unguarded_target_passes(self) -> None:
        """Targets without guards always pass."""
        registry = build_default_guards(10)

        assert registry.guards_for(EntityKind.LESSON, LessonStatus.CANCELLED) == ()
        assert registry.evaluate(
            EntityKind.LESSON,
            LessonStatus.SCHEDULED,
            LessonStatus.CANCELLED,
            GuardContext(),
        ) is None

    def test_new_guard_extends_without_table_change(self) -> None:
        """Registering a guard adds a precondition to an existing edge."""
        registry = build_default_guards(10)
        registry.register(
            EntityKind.LESSON,
            LessonStatus.CANCELLED,
            lambda context, current: GuardFailure(ReasonCode.LESSON_IN_PROGRESS, "locked"),
        )
        validator = StatusTransitionValidator(guards=registry)

        decision = validator.check(EntityKind.LESSON, "SCHEDULED", "CANCELLED")

        assert decision.reason == ReasonCode.LESSON_IN_PROGRESS

    def test_default_guards_follow_voting_settings(self) -> None:
        """The module threshold comes from the voting settings."""
        validator = StatusTransitionValidator(
            voting=VotingSettings(required_topics=2, min_topics_for_course=3)
        )

        assert validator.check(
            EntityKind.COURSE, "DRAFT", "TOPIC_VOTING", GuardContext(module_count=3)
        ).allowed
        assert not validator.check(
            EntityKind.COURSE, "DRAFT", "TOPIC_VOTING", GuardContext(module_count=2)
        ).allowed
