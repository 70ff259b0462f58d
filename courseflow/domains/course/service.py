# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course service for managing the course aggregate.

This module provides the CourseService class for:
- Course creation with optional initial modules
- Course status changes through the transition validator
- Lesson schedule generation
- Teacher assignment
- Soft deletion
"""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from courseflow.core.config import Settings, get_settings, parse_time_of_day
from courseflow.core.lifecycle.errors import (
    EntityNotFoundError,
    PreconditionFailedError,
    ReasonCode,
    ReferentialError,
    ValidationFailedError,
)
from courseflow.core.lifecycle.schedule import generate_schedule
from courseflow.core.lifecycle.states import CourseStatus, EntityKind, LessonStatus
from courseflow.core.lifecycle.validator import StatusTransitionValidator
from courseflow.domains.queries import (
    count_seat_holders,
    get_course,
    list_modules,
    load_course_context,
)
from courseflow.infrastructure.database.models import (
    Course,
    CourseTeacher,
    Lesson,
    Module,
    Progress,
    School,
    Teacher,
    new_id,
)
from courseflow.infrastructure.database.transaction import atomic, replace_all
from courseflow.models.common import StatusChangeResponse
from courseflow.models.course import (
    CourseCreateRequest,
    CourseResponse,
    LessonResponse,
    ModuleResponse,
    ScheduleLessonsRequest,
    ScheduleResponse,
    TeacherAssignmentRequest,
    TeacherAssignmentResponse,
)
from courseflow.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class CourseService:
    """Service for course aggregate operations.

    Attributes:
        db: Async database session.
        settings: Application settings.
        validator: Status transition validator.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: Settings | None = None,
        validator: StatusTransitionValidator | None = None,
    ) -> None:
        """Initialize course service.

        Args:
            db: Async database session.
            settings: Application settings. Defaults to get_settings().
            validator: Transition validator. Defaults to one built from
                the voting settings.
        """
        self.db = db
        self.settings = settings or get_settings()
        self.validator = validator or StatusTransitionValidator(voting=self.settings.voting)

    async def create_course(self, request: CourseCreateRequest) -> CourseResponse:
        """Create a DRAFT course.

        Args:
            request: Course data, optionally with its initial modules.

        Returns:
            The created course with its modules.

        Raises:
            EntityNotFoundError: If the school does not exist.
            ValidationFailedError: VALIDATION_ERROR if the capacity exceeds
                the configured limit or the initial module count is outside
                the allowed range.
        """
        voting = self.settings.voting
        enrollment = self.settings.enrollment

        max_students = request.max_students or enrollment.default_max_students
        if max_students > enrollment.max_students_limit:
            raise ValidationFailedError(
                ReasonCode.VALIDATION_ERROR,
                f"max_students cannot exceed {enrollment.max_students_limit}",
            )

        if request.modules and not (
            voting.min_topics_for_course
            <= len(request.modules)
            <= voting.max_topics_per_course
        ):
            raise ValidationFailedError(
                ReasonCode.VALIDATION_ERROR,
                f"A course needs between {voting.min_topics_for_course} "
                f"and {voting.max_topics_per_course} modules",
            )

        async with atomic(self.db):
            if await self.db.get(School, request.school_id) is None:
                raise EntityNotFoundError("School", request.school_id)

            course = Course(
                id=new_id(),
                school_id=request.school_id,
                name=request.name,
                description=request.description,
                status=CourseStatus.DRAFT.value,
                max_students=max_students,
                price=request.price,
                currency=request.currency,
                start_date=request.start_date,
                end_date=request.end_date,
            )
            modules = [
                Module(
                    id=new_id(),
                    course_id=course.id,
                    title=module.title,
                    description=module.description,
                    order_index=index,
                    is_selected=False,
                )
                for index, module in enumerate(request.modules)
            ]
            self.db.add(course)
            await self.db.flush()
            self.db.add_all(modules)
            await self.db.flush()

            response = self._to_response(course, modules)

        logger.info(
            "Created course: course=%s, school=%s, modules=%d",
            response.id,
            response.school_id,
            len(modules),
        )

        return response

    async def get_course(self, course_id: str) -> CourseResponse:
        """Get course details with its modules.

        Raises:
            EntityNotFoundError: If not found or soft-deleted.
        """
        course = await get_course(self.db, course_id)
        modules = await list_modules(self.db, course_id)
        return self._to_response(course, modules)

    async def change_status(
        self,
        course_id: str,
        requested: CourseStatus | str,
    ) -> StatusChangeResponse:
        """Move a course to a new status.

        Args:
            course_id: Course identifier.
            requested: Requested course status.

        Returns:
            Previous and new status.

        Raises:
            EntityNotFoundError: If not found or soft-deleted.
            InvalidTransitionError: If the course table forbids it.
            PreconditionFailedError: INSUFFICIENT_MODULES or NO_LESSONS.
        """
        async with atomic(self.db):
            course = await get_course(self.db, course_id)
            context = await load_course_context(self.db, course)
            target = self.validator.ensure(EntityKind.COURSE, course.status, requested, context)
            previous = course.status
            course.status = target.value

        logger.info(
            "Course status changed: course=%s, %s -> %s",
            course_id,
            previous,
            target.value,
        )

        return StatusChangeResponse(
            entity_kind=EntityKind.COURSE,
            entity_id=course_id,
            previous_status=previous,
            status=target.value,
        )

    async def schedule_lessons(
        self,
        course_id: str,
        request: ScheduleLessonsRequest,
    ) -> ScheduleResponse:
        """Generate and store the lesson schedule of a course.

        Existing lessons are replaced. Interior lessons cycle through the
        selected modules in order_index order. The course's start and end
        dates follow the first and last lesson, and the lesson total of
        every progress row of the course is refreshed.

        Args:
            course_id: Course identifier.
            request: Schedule parameters; omitted values use the configured
                defaults.

        Returns:
            The stored lessons and the course bounds.

        Raises:
            EntityNotFoundError: If the course does not exist.
            ValidationFailedError: VALIDATION_ERROR for a lesson count below
                one or a duration outside the allowed range.
        """
        defaults = self.settings.schedule
        frequency = request.frequency or defaults.frequency
        time_of_day = parse_time_of_day(request.preferred_time or defaults.preferred_time)
        skip_weekends = (
            defaults.skip_weekends if request.skip_weekends is None else request.skip_weekends
        )
        count = (
            defaults.number_of_lessons
            if request.number_of_lessons is None
            else request.number_of_lessons
        )
        duration = defaults.duration if request.duration is None else request.duration

        if count < 1:
            raise ValidationFailedError(
                ReasonCode.VALIDATION_ERROR,
                "At least one lesson must be scheduled",
            )
        if not defaults.min_duration <= duration <= defaults.max_duration:
            raise ValidationFailedError(
                ReasonCode.VALIDATION_ERROR,
                f"Duration must be between {defaults.min_duration} "
                f"and {defaults.max_duration} minutes",
            )

        async with atomic(self.db):
            course = await get_course(self.db, course_id)
            modules = await list_modules(self.db, course_id, selected_only=True)
            teacher_id = await self._primary_teacher_id(course_id)

            descriptors = generate_schedule(
                start_date=request.start_date,
                frequency=frequency,
                time_of_day=time_of_day,
                skip_weekends=skip_weekends,
                count=count,
                selected_modules=modules,
                duration=duration,
                tz=defaults.tzinfo,
            )
            lessons = await replace_all(
                self.db,
                Lesson,
                [Lesson.course_id == course_id],
                [
                    Lesson(
                        id=new_id(),
                        course_id=course_id,
                        module_id=descriptor.module_id,
                        teacher_id=teacher_id,
                        lesson_number=descriptor.lesson_number,
                        title=descriptor.title,
                        scheduled_at=ensure_utc(descriptor.scheduled_at),
                        duration=descriptor.duration,
                        status=LessonStatus.SCHEDULED.value,
                    )
                    for descriptor in descriptors
                ],
            )

            course.start_date = lessons[0].scheduled_at
            course.end_date = lessons[-1].scheduled_at

            await self.db.execute(
                update(Progress)
                .where(Progress.course_id == course_id)
                .values(total_lessons=len(lessons))
            )

            response = ScheduleResponse(
                course_id=course_id,
                start_date=course.start_date,
                end_date=course.end_date,
                lessons=[LessonResponse.model_validate(lesson) for lesson in lessons],
            )

        logger.info(
            "Lessons scheduled: course=%s, lessons=%d, modules=%d, frequency=%s",
            course_id,
            len(response.lessons),
            len(modules),
            frequency,
        )

        return response

    async def assign_teachers(
        self,
        course_id: str,
        request: TeacherAssignmentRequest,
    ) -> list[TeacherAssignmentResponse]:
        """Replace the teacher assignments of a course.

        Args:
            course_id: Course identifier.
            request: Teachers to assign and the optional primary teacher.

        Returns:
            The new assignments in request order.

        Raises:
            EntityNotFoundError: If the course does not exist.
            ReferentialError: INVALID_TEACHERS if a teacher is unknown or
                belongs to another school.
        """
        teacher_ids = list(dict.fromkeys(request.teacher_ids))

        async with atomic(self.db):
            course = await get_course(self.db, course_id)

            result = await self.db.execute(
                select(Teacher.id).where(
                    Teacher.id.in_(teacher_ids),
                    Teacher.school_id == course.school_id,
                    Teacher.deleted_at.is_(None),
                )
            )
            if len(set(result.scalars().all())) != len(teacher_ids):
                raise ReferentialError(
                    ReasonCode.INVALID_TEACHERS,
                    "Some teachers not found or not in this school",
                )

            assignments = await replace_all(
                self.db,
                CourseTeacher,
                [CourseTeacher.course_id == course_id],
                [
                    CourseTeacher(
                        course_id=course_id,
                        teacher_id=teacher_id,
                        is_primary=teacher_id == request.primary_teacher_id,
                    )
                    for teacher_id in teacher_ids
                ],
            )
            response = [TeacherAssignmentResponse.model_validate(a) for a in assignments]

        logger.info("Assigned teachers: course=%s, teachers=%d", course_id, len(response))

        return response

    async def delete_course(self, course_id: str) -> None:
        """Soft delete a course.

        The course is tombstoned and, where its table allows, cancelled.

        Raises:
            EntityNotFoundError: If not found or already deleted.
            PreconditionFailedError: HAS_ACTIVE_ENROLLMENTS while students
                hold seats.
        """
        async with atomic(self.db):
            course = await get_course(self.db, course_id)

            if await count_seat_holders(self.db, course_id) > 0:
                raise PreconditionFailedError(
                    ReasonCode.HAS_ACTIVE_ENROLLMENTS,
                    "Cannot delete course with active enrollments",
                )

            if self.validator.validate(
                EntityKind.COURSE, course.status, CourseStatus.CANCELLED
            ).allowed:
                course.status = CourseStatus.CANCELLED.value
            course.deleted_at = utc_now()

        logger.info("Deleted course: course=%s", course_id)

    async def _primary_teacher_id(self, course_id: str) -> str | None:
        """Get the primary teacher of a course, if one is assigned."""
        result = await self.db.execute(
            select(CourseTeacher.teacher_id).where(
                CourseTeacher.course_id == course_id,
                CourseTeacher.is_primary.is_(True),
            )
        )
        return result.scalars().first()

    @staticmethod
    def _to_response(course: Course, modules: list[Module]) -> CourseResponse:
        """Convert a course and its modules to a response."""
        response = CourseResponse.model_validate(course)
        return response.model_copy(
            update={"modules": [ModuleResponse.model_validate(m) for m in modules]}
        )
