# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Capacity rules for enrollment admission.

A course admits students while the number of seat-holding enrollments
(PENDING or ACTIVE) is below max_students. The check runs against the
count read inside the admitting transaction; no seat is reserved ahead of
time.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from courseflow.core.lifecycle.errors import (
    ConflictError,
    PreconditionFailedError,
    ReasonCode,
)
from courseflow.core.lifecycle.states import PaymentStatus


@dataclass(frozen=True)
class BulkAdmissionPlan:
    """Partition of a bulk admission request.

    Attributes:
        new_student_ids: Students to enroll, in request order.
        skipped_student_ids: Students already enrolled, in request order.
    """

    new_student_ids: list[str] = field(default_factory=list)
    skipped_student_ids: list[str] = field(default_factory=list)


def remaining_seats(active_count: int, max_students: int) -> int:
    """Free seats left in a course, never negative."""
    return max(max_students - active_count, 0)


def check_single_admission(active_count: int, max_students: int) -> None:
    """Ensure one more student fits.

    Raises:
        PreconditionFailedError: With COURSE_FULL if no seat is free.
    """
    if active_count >= max_students:
        raise PreconditionFailedError(
            ReasonCode.COURSE_FULL,
            "Course is at maximum capacity",
        )


def plan_bulk_admission(
    student_ids: Sequence[str],
    already_enrolled: Iterable[str],
    active_count: int,
    max_students: int,
) -> BulkAdmissionPlan:
    """Partition a bulk request and check the batch fits.

    Duplicate ids in the request are collapsed. Students already enrolled
    are skipped rather than rejected. The remaining batch is admitted all
    at once or not at all.

    Args:
        student_ids: Requested students.
        already_enrolled: Students holding an enrollment in the course.
        active_count: Seat-holding enrollments of the course.
        max_students: Course capacity.

    Returns:
        Admission plan.

    Raises:
        ConflictError: With ALL_ALREADY_ENROLLED if nobody is new.
        PreconditionFailedError: With INSUFFICIENT_CAPACITY if the new
            students do not all fit.
    """
    enrolled = set(already_enrolled)
    unique_ids = list(dict.fromkeys(student_ids))

    new_ids = [student_id for student_id in unique_ids if student_id not in enrolled]
    skipped_ids = [student_id for student_id in unique_ids if student_id in enrolled]

    if not new_ids:
        raise ConflictError(
            ReasonCode.ALL_ALREADY_ENROLLED,
            "All students are already enrolled",
        )

    if active_count + len(new_ids) > max_students:
        raise PreconditionFailedError(
            ReasonCode.INSUFFICIENT_CAPACITY,
            f"Cannot enroll {len(new_ids)} students. "
            f"Only {remaining_seats(active_count, max_students)} spots available.",
        )

    return BulkAdmissionPlan(new_student_ids=new_ids, skipped_student_ids=skipped_ids)


def initial_payment_status(amount_due: Decimal | int | float | None) -> PaymentStatus:
    """Seed payment status from the effective amount due.

    Nothing to pay means PAID, anything else starts PENDING.
    """
    if amount_due is None or amount_due == 0:
        return PaymentStatus.PAID
    return PaymentStatus.PENDING
