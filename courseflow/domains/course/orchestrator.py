# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course orchestrator.

Single entry point for the calling layer. It composes the domain services
over one session and one transition validator, so every status change of
every entity kind is checked against the same tables and guards.

Example:
    async with get_session() as session:
        orchestrator = CourseOrchestrator(session)
        await orchestrator.change_status(EntityKind.COURSE, course_id, "TOPIC_VOTING")
        await orchestrator.submit_votes(student_id, course_id, module_ids)
        await orchestrator.finalize_voting(course_id)
        await orchestrator.schedule_lessons(
            course_id, ScheduleLessonsRequest(start_date=date(2024, 1, 1))
        )
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from courseflow.core.config import Settings, get_settings
from courseflow.core.lifecycle.errors import ReasonCode, ValidationFailedError
from courseflow.core.lifecycle.states import CourseStatus, EntityKind, coerce_state
from courseflow.core.lifecycle.validator import StatusTransitionValidator
from courseflow.domains.course.service import CourseService
from courseflow.domains.enrollment.service import EnrollmentAdmissionService
from courseflow.domains.lesson.service import LessonService
from courseflow.domains.module.service import ModuleService
from courseflow.domains.voting.service import TopicVotingService
from courseflow.models.common import StatusChangeResponse
from courseflow.models.course import (
    CourseCreateRequest,
    CourseResponse,
    ModuleCreateRequest,
    ModuleResponse,
    ScheduleLessonsRequest,
    ScheduleResponse,
    TeacherAssignmentRequest,
    TeacherAssignmentResponse,
)
from courseflow.models.enrollment import BulkAdmissionResponse, EnrollmentResponse
from courseflow.models.voting import (
    FinalizeVotingResponse,
    VoteSubmissionResponse,
    VotingOverviewResponse,
    VotingResultsResponse,
)

logger = logging.getLogger(__name__)


class CourseOrchestrator:
    """Facade over the course lifecycle services.

    Each operation runs in its own transaction, owned by the service that
    implements it.

    Attributes:
        db: Async database session shared by all services.
        settings: Application settings.
        validator: Transition validator shared by all services.
        courses: Course aggregate operations.
        modules: Module operations.
        voting: Topic voting operations.
        enrollments: Admission and enrollment operations.
        lessons: Lesson operations.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: Settings | None = None,
        validator: StatusTransitionValidator | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            db: Async database session.
            settings: Application settings. Defaults to get_settings().
            validator: Transition validator. Defaults to one built from
                the voting settings.
        """
        self.db = db
        self.settings = settings or get_settings()
        self.validator = validator or StatusTransitionValidator(voting=self.settings.voting)

        self.courses = CourseService(db, self.settings, self.validator)
        self.modules = ModuleService(db, self.settings)
        self.voting = TopicVotingService(db, self.settings, self.validator)
        self.enrollments = EnrollmentAdmissionService(db, self.settings, self.validator)
        self.lessons = LessonService(db, self.settings, self.validator)

    async def change_status(
        self,
        entity_kind: EntityKind | str,
        entity_id: str,
        requested_state: str,
    ) -> StatusChangeResponse:
        """Move any lifecycle-managed entity to a new status.

        A course moving to SCHEDULED goes through finalize_voting so the
        module selection is always made. For the payment kind the target is
        a payment record.

        Args:
            entity_kind: Kind of the entity.
            entity_id: Entity identifier.
            requested_state: Requested status value.

        Returns:
            Previous and new status.

        Raises:
            ValidationFailedError: VALIDATION_ERROR for an unknown kind.
            LifecycleError: Whatever the owning service raises.
        """
        try:
            kind = EntityKind(entity_kind)
        except ValueError as e:
            raise ValidationFailedError(
                ReasonCode.VALIDATION_ERROR,
                f"Unknown entity kind: {entity_kind}",
            ) from e

        if kind == EntityKind.COURSE:
            if coerce_state(kind, requested_state) == CourseStatus.SCHEDULED:
                finalized = await self.voting.finalize_voting(entity_id)
                return StatusChangeResponse(
                    entity_kind=kind,
                    entity_id=entity_id,
                    previous_status=CourseStatus.TOPIC_VOTING.value,
                    status=finalized.status,
                )
            return await self.courses.change_status(entity_id, requested_state)
        if kind == EntityKind.LESSON:
            return await self.lessons.change_status(entity_id, requested_state)
        if kind == EntityKind.ENROLLMENT:
            return await self.enrollments.change_status(entity_id, requested_state)
        return await self.enrollments.change_payment_record_status(entity_id, requested_state)

    # Course

    async def create_course(self, request: CourseCreateRequest) -> CourseResponse:
        """Create a DRAFT course. See CourseService.create_course."""
        return await self.courses.create_course(request)

    async def get_course(self, course_id: str) -> CourseResponse:
        """Get a course with its modules."""
        return await self.courses.get_course(course_id)

    async def delete_course(self, course_id: str) -> None:
        """Soft delete a course. See CourseService.delete_course."""
        await self.courses.delete_course(course_id)

    async def assign_teachers(
        self,
        course_id: str,
        request: TeacherAssignmentRequest,
    ) -> list[TeacherAssignmentResponse]:
        """Replace a course's teachers. See CourseService.assign_teachers."""
        return await self.courses.assign_teachers(course_id, request)

    async def schedule_lessons(
        self,
        course_id: str,
        request: ScheduleLessonsRequest,
    ) -> ScheduleResponse:
        """Generate the lesson schedule. See CourseService.schedule_lessons."""
        return await self.courses.schedule_lessons(course_id, request)

    # Modules

    async def add_module(self, course_id: str, request: ModuleCreateRequest) -> ModuleResponse:
        return await self.modules.add_module(course_id, request)

    async def reorder_modules(self, course_id: str, module_ids: list[str]) -> list[ModuleResponse]:
        return await self.modules.reorder_modules(course_id, module_ids)

    async def remove_module(self, module_id: str) -> None:
        await self.modules.remove_module(module_id)

    # Voting

    async def submit_votes(
        self,
        student_id: str,
        course_id: str,
        module_ids: list[str],
    ) -> VoteSubmissionResponse:
        """Replace a student's votes. See TopicVotingService.submit_votes."""
        return await self.voting.submit_votes(student_id, course_id, module_ids)

    async def finalize_voting(self, course_id: str) -> FinalizeVotingResponse:
        """Close voting. See TopicVotingService.finalize_voting."""
        return await self.voting.finalize_voting(course_id)

    async def get_voting_overview(
        self,
        course_id: str,
        student_id: str,
    ) -> VotingOverviewResponse:
        return await self.voting.get_voting_overview(course_id, student_id)

    async def get_voting_results(self, course_id: str) -> VotingResultsResponse:
        return await self.voting.get_results(course_id)

    # Enrollment

    async def admit(
        self,
        course_id: str,
        student_id: str,
        amount_due: Decimal | None = None,
    ) -> EnrollmentResponse:
        """Admit one student. See EnrollmentAdmissionService.admit."""
        return await self.enrollments.admit(course_id, student_id, amount_due)

    async def admit_bulk(
        self,
        course_id: str,
        student_ids: list[str],
        amount_due: Decimal | None = None,
    ) -> BulkAdmissionResponse:
        """Admit several students. See EnrollmentAdmissionService.admit_bulk."""
        return await self.enrollments.admit_bulk(course_id, student_ids, amount_due)

    async def withdraw(self, enrollment_id: str, reason: str | None = None) -> EnrollmentResponse:
        return await self.enrollments.withdraw(enrollment_id, reason)

    async def change_payment_status(
        self,
        enrollment_id: str,
        requested_state: str,
    ) -> StatusChangeResponse:
        return await self.enrollments.change_payment_status(enrollment_id, requested_state)

    async def delete_enrollment(self, enrollment_id: str) -> None:
        await self.enrollments.delete_enrollment(enrollment_id)

    # Lessons

    async def delete_lesson(self, lesson_id: str) -> None:
        await self.lessons.delete_lesson(lesson_id)
