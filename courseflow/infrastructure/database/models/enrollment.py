# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment, progress and payment models."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from courseflow.core.lifecycle.states import EnrollmentStatus, PaymentStatus
from courseflow.infrastructure.database.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from courseflow.utils.datetime import utc_now


class Enrollment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A student's place in a course.

    status and payment_status evolve independently, each under its own
    transition table.
    """

    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_enrollments_student_course"),
    )

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("students.id"), nullable=False, index=True
    )
    course_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("courses.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=EnrollmentStatus.ACTIVE.value, index=True
    )
    payment_status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=PaymentStatus.PENDING.value
    )
    amount_due: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    enrolled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Progress(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Per-enrollment lesson progress.

    total_lessons is a snapshot of the course's lesson count, refreshed when
    the schedule is regenerated.
    """

    __tablename__ = "progress"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_progress_student_course"),
    )

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("students.id"), nullable=False, index=True
    )
    course_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("courses.id"), nullable=False, index=True
    )
    total_lessons: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_lessons: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Payment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A payment recorded against an enrollment by the billing collaborator."""

    __tablename__ = "payments"

    enrollment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("enrollments.id"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=PaymentStatus.PENDING.value
    )
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
