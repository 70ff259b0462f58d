# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the course aggregate through the orchestrator."""

from datetime import date

import pytest
import pytest_asyncio
from sqlalchemy import select

from courseflow.core.lifecycle.errors import (
    EntityNotFoundError,
    InvalidTransitionError,
    PreconditionFailedError,
    ReasonCode,
    ReferentialError,
    ValidationFailedError,
)
from courseflow.core.lifecycle.states import CourseStatus, EntityKind, LessonStatus
from courseflow.infrastructure.database.models import Course, Lesson, Module, TopicVote
from courseflow.models.course import (
    CourseCreateRequest,
    ModuleCreateRequest,
    ScheduleLessonsRequest,
    TeacherAssignmentRequest,
)

pytestmark = pytest.mark.integration


def _modules(count: int) -> list[ModuleCreateRequest]:
    return [ModuleCreateRequest(title=f"Topic {i}") for i in range(count)]


async def _module_order(session, course_id: str) -> list[str]:
    result = await session.execute(
        select(Module.id).where(Module.course_id == course_id).order_by(Module.order_index)
    )
    return list(result.scalars().all())


@pytest_asyncio.fixture
async def running_course(orchestrator, seed):
    """A course with selected modules and a three-lesson schedule."""
    school_id = await seed.school()
    course_id, module_ids = await seed.course(school_id, status=CourseStatus.TOPIC_VOTING)
    await orchestrator.finalize_voting(course_id)
    schedule = await orchestrator.schedule_lessons(
        course_id,
        ScheduleLessonsRequest(start_date=date(2024, 1, 1), number_of_lessons=3),
    )
    return {
        "course_id": course_id,
        "module_ids": module_ids,
        "lesson_ids": [lesson.id for lesson in schedule.lessons],
    }


class TestCreateCourse:
    """Tests for course creation."""

    @pytest.mark.asyncio
    async def test_create_with_modules(self, orchestrator, seed):
        """Test a new course is DRAFT with modules in request order."""
        school_id = await seed.school()

        result = await orchestrator.create_course(
            CourseCreateRequest(school_id=school_id, name="Debate Club", modules=_modules(10))
        )

        assert result.status == CourseStatus.DRAFT.value
        assert result.max_students == 10
        assert [m.title for m in result.modules] == [f"Topic {i}" for i in range(10)]
        assert [m.order_index for m in result.modules] == list(range(10))

        fetched = await orchestrator.get_course(result.id)
        assert [m.id for m in fetched.modules] == [m.id for m in result.modules]

    @pytest.mark.asyncio
    async def test_create_without_modules(self, orchestrator, seed):
        """Test modules may be added after creation."""
        school_id = await seed.school()

        result = await orchestrator.create_course(
            CourseCreateRequest(school_id=school_id, name="Debate Club", max_students=25)
        )

        assert result.modules == []
        assert result.max_students == 25

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [{"max_students": 500}, {"modules": _modules(5)}, {"modules": _modules(21)}],
    )
    async def test_create_rejects_invalid_input(self, orchestrator, db_session, seed, overrides):
        """Test capacity and module count limits."""
        school_id = await seed.school()

        with pytest.raises(ValidationFailedError) as exc_info:
            await orchestrator.create_course(
                CourseCreateRequest(school_id=school_id, name="Debate Club", **overrides)
            )

        assert exc_info.value.reason == ReasonCode.VALIDATION_ERROR
        result = await db_session.execute(select(Course.id))
        assert result.scalars().all() == []

    @pytest.mark.asyncio
    async def test_create_unknown_school(self, orchestrator):
        """Test creating a course for a missing school is NOT_FOUND."""
        with pytest.raises(EntityNotFoundError) as exc_info:
            await orchestrator.create_course(
                CourseCreateRequest(school_id="missing", name="Debate Club")
            )

        assert exc_info.value.reason == ReasonCode.NOT_FOUND


class TestCourseStatus:
    """Tests for course status changes."""

    @pytest.mark.asyncio
    async def test_open_voting(self, orchestrator, seed):
        """Test DRAFT to TOPIC_VOTING with enough modules."""
        school_id = await seed.school()
        course_id, _ = await seed.course(school_id, modules=10)

        result = await orchestrator.change_status(EntityKind.COURSE, course_id, "TOPIC_VOTING")

        assert result.previous_status == "DRAFT"
        assert result.status == "TOPIC_VOTING"

    @pytest.mark.asyncio
    async def test_open_voting_needs_modules(self, orchestrator, db_session, seed):
        """Test voting cannot open with too few modules."""
        school_id = await seed.school()
        course_id, _ = await seed.course(school_id, modules=4)

        with pytest.raises(PreconditionFailedError) as exc_info:
            await orchestrator.change_status(EntityKind.COURSE, course_id, "TOPIC_VOTING")

        assert exc_info.value.reason == ReasonCode.INSUFFICIENT_MODULES
        course = await db_session.get(Course, course_id)
        assert course.status == CourseStatus.DRAFT.value

    @pytest.mark.asyncio
    async def test_skipping_states_rejected(self, orchestrator, seed):
        """Test DRAFT cannot jump to ARCHIVED."""
        school_id = await seed.school()
        course_id, _ = await seed.course(school_id)

        with pytest.raises(InvalidTransitionError) as exc_info:
            await orchestrator.change_status(EntityKind.COURSE, course_id, "ARCHIVED")

        assert exc_info.value.reason == ReasonCode.INVALID_STATUS_TRANSITION
        assert exc_info.value.http_status == 400

    @pytest.mark.asyncio
    async def test_unknown_state_rejected(self, orchestrator, seed):
        """Test a state outside the course table is an invalid transition."""
        school_id = await seed.school()
        course_id, _ = await seed.course(school_id)

        with pytest.raises(InvalidTransitionError):
            await orchestrator.change_status(EntityKind.COURSE, course_id, "PUBLISHED")

    @pytest.mark.asyncio
    async def test_unknown_entity_kind(self, orchestrator):
        """Test an unknown entity kind is a validation error."""
        with pytest.raises(ValidationFailedError) as exc_info:
            await orchestrator.change_status("invoice", "any-id", "PAID")

        assert exc_info.value.reason == ReasonCode.VALIDATION_ERROR

    @pytest.mark.asyncio
    async def test_scheduled_goes_through_finalize(self, orchestrator, db_session, seed):
        """Test moving to SCHEDULED selects the winning modules."""
        school_id = await seed.school()
        course_id, _ = await seed.course(school_id, status=CourseStatus.TOPIC_VOTING)

        result = await orchestrator.change_status(EntityKind.COURSE, course_id, "SCHEDULED")

        assert result.previous_status == "TOPIC_VOTING"
        assert result.status == "SCHEDULED"
        selected = await db_session.execute(
            select(Module.id).where(Module.course_id == course_id, Module.is_selected.is_(True))
        )
        assert len(selected.scalars().all()) == 8


class TestDeleteCourse:
    """Tests for course soft deletion."""

    @pytest.mark.asyncio
    async def test_delete_tombstones_and_cancels(self, orchestrator, db_session, seed):
        """Test a deleted course is cancelled and hidden."""
        school_id = await seed.school()
        course_id, _ = await seed.course(school_id)

        await orchestrator.delete_course(course_id)

        course = await db_session.get(Course, course_id)
        assert course.deleted_at is not None
        assert course.status == CourseStatus.CANCELLED.value
        with pytest.raises(EntityNotFoundError):
            await orchestrator.get_course(course_id)

    @pytest.mark.asyncio
    async def test_delete_completed_keeps_status(self, orchestrator, db_session, seed):
        """Test a completed course keeps its status when tombstoned."""
        school_id = await seed.school()
        course_id, _ = await seed.course(school_id, status=CourseStatus.COMPLETED)

        await orchestrator.delete_course(course_id)

        course = await db_session.get(Course, course_id)
        assert course.deleted_at is not None
        assert course.status == CourseStatus.COMPLETED.value

    @pytest.mark.asyncio
    async def test_delete_with_active_enrollments(self, orchestrator, db_session, seed):
        """Test a course holding students cannot be deleted."""
        school_id = await seed.school()
        course_id, _ = await seed.course(school_id)
        await seed.enrollment(course_id, await seed.student(school_id))

        with pytest.raises(PreconditionFailedError) as exc_info:
            await orchestrator.delete_course(course_id)

        assert exc_info.value.reason == ReasonCode.HAS_ACTIVE_ENROLLMENTS
        course = await db_session.get(Course, course_id)
        assert course.deleted_at is None

    @pytest.mark.asyncio
    async def test_delete_twice(self, orchestrator, seed):
        """Test a deleted course cannot be deleted again."""
        school_id = await seed.school()
        course_id, _ = await seed.course(school_id)
        await orchestrator.delete_course(course_id)

        with pytest.raises(EntityNotFoundError):
            await orchestrator.delete_course(course_id)


class TestAssignTeachers:
    """Tests for teacher assignment."""

    @pytest.mark.asyncio
    async def test_assignment_replaces_previous(self, orchestrator, seed):
        """Test each assignment replaces the whole teacher set."""
        school_id = await seed.school()
        course_id, _ = await seed.course(school_id)
        first = await seed.teacher(school_id, "First")
        second = await seed.teacher(school_id, "Second")
        await orchestrator.assign_teachers(
            course_id, TeacherAssignmentRequest(teacher_ids=[first], primary_teacher_id=first)
        )

        result = await orchestrator.assign_teachers(
            course_id,
            TeacherAssignmentRequest(teacher_ids=[second, first, second], primary_teacher_id=second),
        )

        assert [(a.teacher_id, a.is_primary) for a in result] == [(second, True), (first, False)]

    @pytest.mark.asyncio
    async def test_foreign_teacher_rejected(self, orchestrator, seed):
        """Test teachers of another school are refused."""
        school_id = await seed.school()
        other_school = await seed.school("Istituto Volta")
        course_id, _ = await seed.course(school_id)
        foreign = await seed.teacher(other_school)

        with pytest.raises(ReferentialError) as exc_info:
            await orchestrator.assign_teachers(
                course_id, TeacherAssignmentRequest(teacher_ids=[foreign])
            )

        assert exc_info.value.reason == ReasonCode.INVALID_TEACHERS


class TestModules:
    """Tests for module authoring."""

    @pytest.mark.asyncio
    async def test_add_module_appends(self, orchestrator, seed):
        """Test a new module is placed last."""
        school_id = await seed.school()
        course_id, _ = await seed.course(school_id, modules=10)

        result = await orchestrator.add_module(course_id, ModuleCreateRequest(title="Rebuttals"))

        assert result.order_index == 10
        assert result.is_selected is False

    @pytest.mark.asyncio
    async def test_add_module_limit(self, orchestrator, seed):
        """Test a course cannot exceed the module maximum."""
        school_id = await seed.school()
        course_id, _ = await seed.course(school_id, modules=20)

        with pytest.raises(PreconditionFailedError) as exc_info:
            await orchestrator.add_module(course_id, ModuleCreateRequest(title="One more"))

        assert exc_info.value.reason == ReasonCode.MAX_MODULES_REACHED

    @pytest.mark.asyncio
    async def test_reorder(self, orchestrator, db_session, seed):
        """Test reordering rewrites order_index."""
        school_id = await seed.school()
        course_id, module_ids = await seed.course(school_id, modules=10)

        result = await orchestrator.reorder_modules(course_id, module_ids[::-1])

        assert [m.order_index for m in result] == list(range(10))
        assert await _module_order(db_session, course_id) == module_ids[::-1]

    @pytest.mark.asyncio
    async def test_reorder_requires_every_module(self, orchestrator, db_session, seed):
        """Test a partial list is refused."""
        school_id = await seed.school()
        course_id, module_ids = await seed.course(school_id, modules=10)

        with pytest.raises(ReferentialError) as exc_info:
            await orchestrator.reorder_modules(course_id, module_ids[1:])

        assert exc_info.value.reason == ReasonCode.INVALID_MODULES
        assert await _module_order(db_session, course_id) == module_ids

    @pytest.mark.asyncio
    async def test_remove_closes_gap(self, orchestrator, db_session, seed):
        """Test removal deletes votes and keeps order_index dense."""
        school_id = await seed.school()
        course_id, module_ids = await seed.course(school_id, modules=11)
        student_id = await seed.student(school_id)
        await seed.vote(course_id, student_id, module_ids[2:4])

        await orchestrator.remove_module(module_ids[2])

        assert await _module_order(db_session, course_id) == module_ids[:2] + module_ids[3:]
        order = await db_session.execute(
            select(Module.order_index)
            .where(Module.course_id == course_id)
            .order_by(Module.order_index)
        )
        assert order.scalars().all() == list(range(10))
        votes = await db_session.execute(select(TopicVote.module_id))
        assert votes.scalars().all() == [module_ids[3]]

    @pytest.mark.asyncio
    async def test_remove_below_voting_minimum(self, orchestrator, seed):
        """Test voting courses keep their minimum number of modules."""
        school_id = await seed.school()
        course_id, module_ids = await seed.course(
            school_id, status=CourseStatus.TOPIC_VOTING, modules=10
        )

        with pytest.raises(PreconditionFailedError) as exc_info:
            await orchestrator.remove_module(module_ids[0])

        assert exc_info.value.reason == ReasonCode.INSUFFICIENT_MODULES

    @pytest.mark.asyncio
    async def test_remove_module_with_lessons(self, orchestrator, db_session, running_course):
        """Test a module used by a live lesson is kept until the lesson goes."""
        module_id = running_course["module_ids"][0]

        with pytest.raises(PreconditionFailedError) as exc_info:
            await orchestrator.remove_module(module_id)

        assert exc_info.value.reason == ReasonCode.HAS_LESSONS

        lesson_id = running_course["lesson_ids"][1]
        await orchestrator.delete_lesson(lesson_id)
        await orchestrator.remove_module(module_id)

        assert await db_session.get(Module, module_id) is None
        lesson = await db_session.get(Lesson, lesson_id)
        assert lesson.module_id is None

    @pytest.mark.asyncio
    async def test_remove_unknown_module(self, orchestrator):
        """Test removing a missing module is NOT_FOUND."""
        with pytest.raises(EntityNotFoundError):
            await orchestrator.remove_module("missing")


class TestLessons:
    """Tests for lesson status changes and deletion."""

    @pytest.mark.asyncio
    async def test_lesson_progression(self, orchestrator, running_course):
        """Test a lesson follows its delivery table."""
        lesson_id = running_course["lesson_ids"][0]

        await orchestrator.change_status(EntityKind.LESSON, lesson_id, "REMINDER_SENT")
        result = await orchestrator.change_status(EntityKind.LESSON, lesson_id, "IN_PROGRESS")

        assert result.previous_status == "REMINDER_SENT"
        lesson = await orchestrator.lessons.get_lesson(lesson_id)
        assert lesson.status == LessonStatus.IN_PROGRESS.value

    @pytest.mark.asyncio
    async def test_lesson_cannot_skip_delivery(self, orchestrator, running_course):
        """Test a scheduled lesson cannot be completed directly."""
        with pytest.raises(InvalidTransitionError):
            await orchestrator.change_status(
                EntityKind.LESSON, running_course["lesson_ids"][0], "COMPLETED"
            )

    @pytest.mark.asyncio
    async def test_delete_lesson_cancels(self, orchestrator, db_session, running_course):
        """Test a deleted lesson is cancelled and hidden."""
        lesson_id = running_course["lesson_ids"][2]

        await orchestrator.delete_lesson(lesson_id)

        lesson = await db_session.get(Lesson, lesson_id)
        assert lesson.status == LessonStatus.CANCELLED.value
        assert lesson.deleted_at is not None
        with pytest.raises(EntityNotFoundError):
            await orchestrator.lessons.get_lesson(lesson_id)
        remaining = await orchestrator.lessons.list_lessons(running_course["course_id"])
        assert [lesson.id for lesson in remaining] == running_course["lesson_ids"][:2]

    @pytest.mark.asyncio
    async def test_delete_lesson_in_progress(self, orchestrator, running_course):
        """Test a running lesson cannot be deleted."""
        lesson_id = running_course["lesson_ids"][0]
        await orchestrator.change_status(EntityKind.LESSON, lesson_id, "REMINDER_SENT")
        await orchestrator.change_status(EntityKind.LESSON, lesson_id, "IN_PROGRESS")

        with pytest.raises(PreconditionFailedError) as exc_info:
            await orchestrator.delete_lesson(lesson_id)

        assert exc_info.value.reason == ReasonCode.LESSON_IN_PROGRESS
