# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course aggregate models: course, modules, teacher assignments, topic
votes and lessons.

Status columns store the value of the corresponding enum in
courseflow.core.lifecycle.states.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from courseflow.core.lifecycle.states import CourseStatus, LessonStatus
from courseflow.infrastructure.database.models.base import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


class Course(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    """A course moving through the lifecycle workflow.

    start_date and end_date are derived from the generated lessons.
    """

    __tablename__ = "courses"
    __table_args__ = (
        CheckConstraint("max_students >= 1", name="ck_courses_max_students_positive"),
    )

    school_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("schools.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=CourseStatus.DRAFT.value, index=True
    )
    max_students: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Module(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A votable topic of a course.

    order_index is dense and zero-based within the course. It defines
    display order, tie-breaking in voting and lesson assignment order.
    """

    __tablename__ = "modules"

    course_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("courses.id"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_selected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class CourseTeacher(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Assignment of a teacher to a course."""

    __tablename__ = "course_teachers"
    __table_args__ = (
        UniqueConstraint("course_id", "teacher_id", name="uq_course_teachers_course_teacher"),
    )

    course_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("courses.id"), nullable=False, index=True
    )
    teacher_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("teachers.id"), nullable=False, index=True
    )
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class TopicVote(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One student's vote for one module of a course."""

    __tablename__ = "topic_votes"
    __table_args__ = (
        UniqueConstraint("student_id", "module_id", name="uq_topic_votes_student_module"),
    )

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("students.id"), nullable=False, index=True
    )
    course_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("courses.id"), nullable=False, index=True
    )
    module_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("modules.id"), nullable=False, index=True
    )


class Lesson(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    """A dated lesson of a course."""

    __tablename__ = "lessons"
    __table_args__ = (
        UniqueConstraint("course_id", "lesson_number", name="uq_lessons_course_number"),
    )

    course_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("courses.id"), nullable=False, index=True
    )
    module_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("modules.id"), nullable=True, index=True
    )
    teacher_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("teachers.id"), nullable=True
    )
    lesson_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=LessonStatus.SCHEDULED.value, index=True
    )
