# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lesson service for lesson status changes and removal."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from courseflow.core.config import Settings, get_settings
from courseflow.core.lifecycle.errors import (
    EntityNotFoundError,
    PreconditionFailedError,
    ReasonCode,
)
from courseflow.core.lifecycle.states import EntityKind, LessonStatus
from courseflow.core.lifecycle.validator import StatusTransitionValidator
from courseflow.domains.queries import get_course
from courseflow.infrastructure.database.models import Lesson
from courseflow.infrastructure.database.transaction import atomic
from courseflow.models.common import StatusChangeResponse
from courseflow.models.course import LessonResponse
from courseflow.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class LessonService:
    """Service for lesson operations.

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
        self.db = db
        self.settings = settings or get_settings()
        self.validator = validator or StatusTransitionValidator(voting=self.settings.voting)

    async def list_lessons(self, course_id: str) -> list[LessonResponse]:
        """List a course's live lessons by lesson number.

        Raises:
            EntityNotFoundError: If the course does not exist.
        """
        await get_course(self.db, course_id)
        result = await self.db.execute(
            select(Lesson)
            .where(Lesson.course_id == course_id, Lesson.deleted_at.is_(None))
            .order_by(Lesson.lesson_number)
        )
        return [LessonResponse.model_validate(lesson) for lesson in result.scalars().all()]

    async def get_lesson(self, lesson_id: str) -> LessonResponse:
        """Get lesson details.

        Raises:
            EntityNotFoundError: If not found or soft-deleted.
        """
        return LessonResponse.model_validate(await self._get_lesson(lesson_id))

    async def change_status(
        self,
        lesson_id: str,
        requested: LessonStatus | str,
    ) -> StatusChangeResponse:
        """Move a lesson to a new status.

        Raises:
            EntityNotFoundError: If not found or soft-deleted.
            InvalidTransitionError: If the lesson table forbids it.
        """
        async with atomic(self.db):
            lesson = await self._get_lesson(lesson_id)
            target = self.validator.ensure(EntityKind.LESSON, lesson.status, requested)
            previous = lesson.status
            lesson.status = target.value

        logger.info(
            "Lesson status changed: lesson=%s, %s -> %s",
            lesson_id,
            previous,
            target.value,
        )

        return StatusChangeResponse(
            entity_kind=EntityKind.LESSON,
            entity_id=lesson_id,
            previous_status=previous,
            status=target.value,
        )

    async def delete_lesson(self, lesson_id: str) -> None:
        """Soft delete a lesson.

        The lesson is tombstoned and, where its table allows, cancelled.

        Raises:
            EntityNotFoundError: If not found or already deleted.
            PreconditionFailedError: LESSON_IN_PROGRESS while it is running.
        """
        async with atomic(self.db):
            lesson = await self._get_lesson(lesson_id)
            if lesson.status == LessonStatus.IN_PROGRESS.value:
                raise PreconditionFailedError(
                    ReasonCode.LESSON_IN_PROGRESS,
                    "Cannot delete a lesson in progress",
                )

            if self.validator.validate(
                EntityKind.LESSON, lesson.status, LessonStatus.CANCELLED
            ).allowed:
                lesson.status = LessonStatus.CANCELLED.value
            lesson.deleted_at = utc_now()

        logger.info("Deleted lesson: lesson=%s", lesson_id)

    async def _get_lesson(self, lesson_id: str) -> Lesson:
        """Get a live lesson by ID.

        Raises:
            EntityNotFoundError: If not found or soft-deleted.
        """
        result = await self.db.execute(
            select(Lesson).where(Lesson.id == lesson_id, Lesson.deleted_at.is_(None))
        )
        lesson = result.scalar_one_or_none()

        if not lesson:
            raise EntityNotFoundError("Lesson", lesson_id)

        return lesson
