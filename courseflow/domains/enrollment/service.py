# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment admission service.

This module provides the EnrollmentAdmissionService class for:
- Capacity-guarded single and bulk admission
- Enrollment and payment status changes
- Withdrawal and enrollment removal
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from courseflow.core.config import Settings, get_settings
from courseflow.core.lifecycle.capacity import (
    check_single_admission,
    initial_payment_status,
    plan_bulk_admission,
)
from courseflow.core.lifecycle.errors import (
    ConflictError,
    EntityNotFoundError,
    PreconditionFailedError,
    ReasonCode,
    ReferentialError,
)
from courseflow.core.lifecycle.guards import GuardContext
from courseflow.core.lifecycle.states import (
    EnrollmentStatus,
    EntityKind,
    PaymentStatus,
)
from courseflow.core.lifecycle.validator import StatusTransitionValidator
from courseflow.domains.queries import count_lessons, count_seat_holders, get_course
from courseflow.infrastructure.database.models import (
    Course,
    Enrollment,
    Payment,
    Progress,
    Student,
    TopicVote,
    new_id,
)
from courseflow.infrastructure.database.transaction import atomic
from courseflow.models.common import StatusChangeResponse
from courseflow.models.enrollment import BulkAdmissionResponse, EnrollmentResponse
from courseflow.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class EnrollmentAdmissionService:
    """Service for admitting students into courses.

    A course admits students while its seat-holding enrollments (PENDING or
    ACTIVE) stay below max_students. The count is read inside the admitting
    transaction; with enrollment.lock_course_row the course row is locked
    first so concurrent admissions to one course serialize.

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
        """Initialize enrollment admission service.

        Args:
            db: Async database session.
            settings: Application settings. Defaults to get_settings().
            validator: Transition validator. Defaults to one built from
                the voting settings.
        """
        self.db = db
        self.settings = settings or get_settings()
        self.validator = validator or StatusTransitionValidator(voting=self.settings.voting)

    @property
    def lock_course_row(self) -> bool:
        """Whether admission locks the course row."""
        return self.settings.enrollment.lock_course_row

    async def admit(
        self,
        course_id: str,
        student_id: str,
        amount_due: Decimal | None = None,
        notes: str | None = None,
    ) -> EnrollmentResponse:
        """Admit one student into a course.

        Args:
            course_id: Course identifier.
            student_id: Student identifier.
            amount_due: Overrides the course price for this student.
            notes: Free-text notes stored on the enrollment.

        Returns:
            The new ACTIVE enrollment.

        Raises:
            EntityNotFoundError: If the course or student does not exist.
            ReferentialError: SCHOOL_MISMATCH if the student belongs to
                another school.
            ConflictError: ALREADY_ENROLLED if the pair already exists.
            PreconditionFailedError: COURSE_FULL if no seat is free.
        """
        async with atomic(self.db):
            course = await get_course(self.db, course_id, for_update=self.lock_course_row)
            student = await self._get_student(student_id)

            if student.school_id != course.school_id:
                raise ReferentialError(
                    ReasonCode.SCHOOL_MISMATCH,
                    "Student does not belong to the course's school",
                )

            if await self._find_enrollment(course_id, student_id) is not None:
                raise ConflictError(
                    ReasonCode.ALREADY_ENROLLED,
                    "Student is already enrolled in this course",
                )

            check_single_admission(
                await count_seat_holders(self.db, course_id),
                course.max_students,
            )

            lesson_count = await count_lessons(self.db, course_id)
            enrollment = self._new_enrollment(course, student_id, amount_due, notes)
            self.db.add(enrollment)
            self.db.add(self._new_progress(course_id, student_id, lesson_count))
            await self.db.flush()

            response = EnrollmentResponse.model_validate(enrollment)

        logger.info(
            "Admitted student: student=%s, course=%s, payment=%s",
            student_id,
            course_id,
            response.payment_status,
        )

        return response

    async def admit_bulk(
        self,
        course_id: str,
        student_ids: list[str],
        amount_due: Decimal | None = None,
    ) -> BulkAdmissionResponse:
        """Admit several students at once.

        Duplicate ids are collapsed and students already enrolled are
        skipped. The remaining students are admitted together or not at all.

        Args:
            course_id: Course identifier.
            student_ids: Students to admit.
            amount_due: Overrides the course price for every new student.

        Returns:
            Enrolled and skipped student ids.

        Raises:
            EntityNotFoundError: If the course does not exist.
            ReferentialError: INVALID_STUDENTS if a student is unknown or
                belongs to another school.
            ConflictError: ALL_ALREADY_ENROLLED if nobody is new.
            PreconditionFailedError: INSUFFICIENT_CAPACITY if the new
                students do not all fit.
        """
        unique_ids = list(dict.fromkeys(student_ids))

        async with atomic(self.db):
            course = await get_course(self.db, course_id, for_update=self.lock_course_row)

            result = await self.db.execute(
                select(Student.id).where(
                    Student.id.in_(unique_ids),
                    Student.school_id == course.school_id,
                    Student.deleted_at.is_(None),
                )
            )
            if len(set(result.scalars().all())) != len(unique_ids):
                raise ReferentialError(
                    ReasonCode.INVALID_STUDENTS,
                    "Some students not found or not in this school",
                )

            result = await self.db.execute(
                select(Enrollment.student_id).where(
                    Enrollment.course_id == course_id,
                    Enrollment.student_id.in_(unique_ids),
                )
            )
            plan = plan_bulk_admission(
                unique_ids,
                result.scalars().all(),
                await count_seat_holders(self.db, course_id),
                course.max_students,
            )

            lesson_count = await count_lessons(self.db, course_id)
            for student_id in plan.new_student_ids:
                self.db.add(self._new_enrollment(course, student_id, amount_due))
                self.db.add(self._new_progress(course_id, student_id, lesson_count))
            await self.db.flush()

        logger.info(
            "Bulk admission: course=%s, enrolled=%d, skipped=%d",
            course_id,
            len(plan.new_student_ids),
            len(plan.skipped_student_ids),
        )

        return BulkAdmissionResponse(
            enrolled=plan.new_student_ids,
            skipped=plan.skipped_student_ids,
            total_enrolled=len(plan.new_student_ids),
            total_skipped=len(plan.skipped_student_ids),
        )

    async def get_enrollment(self, enrollment_id: str) -> EnrollmentResponse:
        """Get enrollment details.

        Raises:
            EntityNotFoundError: If not found.
        """
        enrollment = await self._get_enrollment(enrollment_id)
        return EnrollmentResponse.model_validate(enrollment)

    async def list_enrollments(
        self,
        course_id: str,
        status: EnrollmentStatus | None = None,
    ) -> list[EnrollmentResponse]:
        """List a course's enrollments, oldest first.

        Args:
            course_id: Course identifier.
            status: Optional status filter.
        """
        query = select(Enrollment).where(Enrollment.course_id == course_id)
        if status is not None:
            query = query.where(Enrollment.status == EnrollmentStatus(status).value)
        result = await self.db.execute(query.order_by(Enrollment.enrolled_at))
        return [EnrollmentResponse.model_validate(e) for e in result.scalars().all()]

    async def change_status(
        self,
        enrollment_id: str,
        requested: EnrollmentStatus | str,
    ) -> StatusChangeResponse:
        """Move an enrollment to a new status.

        Reactivating a suspended enrollment needs a free seat.

        Args:
            enrollment_id: Enrollment identifier.
            requested: Requested enrollment status.

        Returns:
            Previous and new status.

        Raises:
            EntityNotFoundError: If not found.
            InvalidTransitionError: If the table forbids the transition.
            PreconditionFailedError: COURSE_FULL on reactivation of a
                suspended enrollment in a full course.
        """
        async with atomic(self.db):
            enrollment = await self._get_enrollment(enrollment_id)
            course = await self.db.get(
                Course,
                enrollment.course_id,
                with_for_update=self.lock_course_row or None,
            )
            context = GuardContext(
                active_enrollments=await count_seat_holders(
                    self.db, enrollment.course_id, exclude_enrollment_id=enrollment.id
                ),
                max_students=course.max_students if course is not None else None,
            )
            target = self.validator.ensure(
                EntityKind.ENROLLMENT,
                enrollment.status,
                requested,
                context,
            )

            previous = enrollment.status
            enrollment.status = target.value
            if target == EnrollmentStatus.COMPLETED:
                enrollment.completed_at = utc_now()

        logger.info(
            "Enrollment status changed: enrollment=%s, %s -> %s",
            enrollment_id,
            previous,
            target.value,
        )

        return StatusChangeResponse(
            entity_kind=EntityKind.ENROLLMENT,
            entity_id=enrollment_id,
            previous_status=previous,
            status=target.value,
        )

    async def withdraw(
        self,
        enrollment_id: str,
        reason: str | None = None,
    ) -> EnrollmentResponse:
        """Drop an enrollment, recording the reason in its notes.

        Args:
            enrollment_id: Enrollment identifier.
            reason: Optional withdrawal reason.

        Returns:
            The DROPPED enrollment.

        Raises:
            EntityNotFoundError: If not found.
            InvalidTransitionError: If the enrollment is already terminal.
        """
        async with atomic(self.db):
            enrollment = await self._get_enrollment(enrollment_id)
            target = self.validator.ensure(
                EntityKind.ENROLLMENT,
                enrollment.status,
                EnrollmentStatus.DROPPED,
            )

            enrollment.status = target.value
            if reason:
                note = f"Withdrawn: {reason}"
                enrollment.notes = f"{enrollment.notes}\n{note}" if enrollment.notes else note

            response = EnrollmentResponse.model_validate(enrollment)

        logger.info("Withdrew enrollment: enrollment=%s", enrollment_id)

        return response

    async def change_payment_status(
        self,
        enrollment_id: str,
        requested: PaymentStatus | str,
    ) -> StatusChangeResponse:
        """Move an enrollment's payment status.

        Raises:
            EntityNotFoundError: If not found.
            InvalidTransitionError: If the payment table forbids it.
        """
        async with atomic(self.db):
            enrollment = await self._get_enrollment(enrollment_id)
            target = self.validator.ensure(
                EntityKind.PAYMENT,
                enrollment.payment_status,
                requested,
            )
            previous = enrollment.payment_status
            enrollment.payment_status = target.value

        logger.info(
            "Enrollment payment status changed: enrollment=%s, %s -> %s",
            enrollment_id,
            previous,
            target.value,
        )

        return StatusChangeResponse(
            entity_kind=EntityKind.PAYMENT,
            entity_id=enrollment_id,
            previous_status=previous,
            status=target.value,
        )

    async def change_payment_record_status(
        self,
        payment_id: str,
        requested: PaymentStatus | str,
    ) -> StatusChangeResponse:
        """Move a payment record through the payment table.

        Marking a payment PAID stamps paid_at.

        Raises:
            EntityNotFoundError: If not found.
            InvalidTransitionError: If the payment table forbids it.
        """
        async with atomic(self.db):
            payment = await self.db.get(Payment, payment_id)
            if payment is None:
                raise EntityNotFoundError("Payment", payment_id)

            target = self.validator.ensure(EntityKind.PAYMENT, payment.status, requested)
            previous = payment.status
            payment.status = target.value
            if target == PaymentStatus.PAID:
                payment.paid_at = utc_now()

        logger.info(
            "Payment status changed: payment=%s, %s -> %s",
            payment_id,
            previous,
            target.value,
        )

        return StatusChangeResponse(
            entity_kind=EntityKind.PAYMENT,
            entity_id=payment_id,
            previous_status=previous,
            status=target.value,
        )

    async def delete_enrollment(self, enrollment_id: str) -> None:
        """Permanently remove an enrollment with its progress and votes.

        Args:
            enrollment_id: Enrollment identifier.

        Raises:
            EntityNotFoundError: If not found.
            PreconditionFailedError: HAS_PAYMENTS if payments reference it.
        """
        async with atomic(self.db):
            enrollment = await self._get_enrollment(enrollment_id)

            result = await self.db.execute(
                select(func.count())
                .select_from(Payment)
                .where(Payment.enrollment_id == enrollment_id)
            )
            if result.scalar_one() > 0:
                raise PreconditionFailedError(
                    ReasonCode.HAS_PAYMENTS,
                    "Cannot delete enrollment with recorded payments",
                )

            student_id = enrollment.student_id
            course_id = enrollment.course_id
            await self.db.execute(
                delete(Progress).where(
                    Progress.student_id == student_id,
                    Progress.course_id == course_id,
                )
            )
            await self.db.execute(
                delete(TopicVote).where(
                    TopicVote.student_id == student_id,
                    TopicVote.course_id == course_id,
                )
            )
            await self.db.delete(enrollment)

        logger.info(
            "Removed enrollment: enrollment=%s, student=%s, course=%s",
            enrollment_id,
            student_id,
            course_id,
        )

    def _new_enrollment(
        self,
        course: Course,
        student_id: str,
        amount_due: Decimal | None,
        notes: str | None = None,
    ) -> Enrollment:
        """Build an ACTIVE enrollment with its seeded payment status."""
        effective_amount = amount_due if amount_due is not None else course.price
        return Enrollment(
            id=new_id(),
            student_id=student_id,
            course_id=course.id,
            status=EnrollmentStatus.ACTIVE.value,
            payment_status=initial_payment_status(effective_amount).value,
            amount_due=effective_amount,
            amount_paid=Decimal("0"),
            notes=notes,
            enrolled_at=utc_now(),
        )

    @staticmethod
    def _new_progress(course_id: str, student_id: str, lesson_count: int) -> Progress:
        """Build the progress row that accompanies a new enrollment."""
        return Progress(
            student_id=student_id,
            course_id=course_id,
            total_lessons=lesson_count,
            completed_lessons=0,
        )

    async def _get_student(self, student_id: str) -> Student:
        """Get a live student by ID.

        Raises:
            EntityNotFoundError: If not found or soft-deleted.
        """
        query = select(Student).where(
            Student.id == student_id,
            Student.deleted_at.is_(None),
        )
        result = await self.db.execute(query)
        student = result.scalar_one_or_none()

        if not student:
            raise EntityNotFoundError("Student", student_id)

        return student

    async def _get_enrollment(self, enrollment_id: str) -> Enrollment:
        """Get enrollment by ID.

        Raises:
            EntityNotFoundError: If not found.
        """
        enrollment = await self.db.get(Enrollment, enrollment_id)
        if enrollment is None:
            raise EntityNotFoundError("Enrollment", enrollment_id)
        return enrollment

    async def _find_enrollment(self, course_id: str, student_id: str) -> Enrollment | None:
        """Get the enrollment of a (course, student) pair, if any."""
        query = select(Enrollment).where(
            Enrollment.course_id == course_id,
            Enrollment.student_id == student_id,
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()
