# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lookups shared by the lifecycle services.

Every function runs on the caller's session and inside the caller's
transaction. Soft-deleted rows are treated as absent.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from courseflow.core.lifecycle.errors import EntityNotFoundError
from courseflow.core.lifecycle.guards import GuardContext
from courseflow.core.lifecycle.states import SEAT_HOLDING_STATUSES
from courseflow.infrastructure.database.models import Course, Enrollment, Lesson, Module


async def get_course(
    db: AsyncSession,
    course_id: str,
    for_update: bool = False,
) -> Course:
    """Get a live course by ID.

    Args:
        db: Async database session.
        course_id: Course identifier.
        for_update: Lock the row until the transaction ends.

    Returns:
        Course model instance.

    Raises:
        EntityNotFoundError: If not found or soft-deleted.
    """
    query = select(Course).where(
        Course.id == course_id,
        Course.deleted_at.is_(None),
    )
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    course = result.scalar_one_or_none()

    if not course:
        raise EntityNotFoundError("Course", course_id)

    return course


async def list_modules(
    db: AsyncSession,
    course_id: str,
    selected_only: bool = False,
) -> list[Module]:
    """Get a course's modules in order_index order."""
    query = select(Module).where(Module.course_id == course_id)
    if selected_only:
        query = query.where(Module.is_selected.is_(True))
    result = await db.execute(query.order_by(Module.order_index))
    return list(result.scalars().all())


async def count_modules(db: AsyncSession, course_id: str) -> int:
    """Count a course's modules."""
    result = await db.execute(
        select(func.count()).select_from(Module).where(Module.course_id == course_id)
    )
    return result.scalar_one()


async def count_lessons(db: AsyncSession, course_id: str) -> int:
    """Count a course's live lessons."""
    result = await db.execute(
        select(func.count())
        .select_from(Lesson)
        .where(Lesson.course_id == course_id, Lesson.deleted_at.is_(None))
    )
    return result.scalar_one()


async def count_seat_holders(
    db: AsyncSession,
    course_id: str,
    exclude_enrollment_id: str | None = None,
) -> int:
    """Count enrollments occupying a seat (PENDING or ACTIVE).

    Args:
        db: Async database session.
        course_id: Course identifier.
        exclude_enrollment_id: Enrollment left out of the count, typically
            the one being transitioned.
    """
    query = (
        select(func.count())
        .select_from(Enrollment)
        .where(
            Enrollment.course_id == course_id,
            Enrollment.status.in_([status.value for status in SEAT_HOLDING_STATUSES]),
        )
    )
    if exclude_enrollment_id is not None:
        query = query.where(Enrollment.id != exclude_enrollment_id)
    result = await db.execute(query)
    return result.scalar_one()


async def load_course_context(db: AsyncSession, course: Course) -> GuardContext:
    """Load the aggregates the course and enrollment guards read."""
    return GuardContext(
        module_count=await count_modules(db, course.id),
        lesson_count=await count_lessons(db, course.id),
        active_enrollments=await count_seat_holders(db, course.id),
        max_students=course.max_students,
    )
