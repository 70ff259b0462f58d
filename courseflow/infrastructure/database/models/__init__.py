# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models for the course lifecycle store."""

from courseflow.infrastructure.database.models.base import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    new_id,
)
from courseflow.infrastructure.database.models.course import (
    Course,
    CourseTeacher,
    Lesson,
    Module,
    TopicVote,
)
from courseflow.infrastructure.database.models.enrollment import (
    Enrollment,
    Payment,
    Progress,
)
from courseflow.infrastructure.database.models.school import School, Student, Teacher

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "SoftDeleteMixin",
    "UUIDPrimaryKeyMixin",
    "new_id",
    # School
    "School",
    "Student",
    "Teacher",
    # Course aggregate
    "Course",
    "Module",
    "CourseTeacher",
    "TopicVote",
    "Lesson",
    # Enrollment
    "Enrollment",
    "Progress",
    "Payment",
]
