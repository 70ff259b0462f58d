# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Module service for managing the votable topics of a course.

Module order_index values stay dense and zero-based within a course after
every add, reorder and removal.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from courseflow.core.config import Settings, get_settings
from courseflow.core.lifecycle.errors import (
    EntityNotFoundError,
    PreconditionFailedError,
    ReasonCode,
    ReferentialError,
)
from courseflow.core.lifecycle.states import CourseStatus
from courseflow.domains.queries import count_modules, get_course, list_modules
from courseflow.infrastructure.database.models import Lesson, Module, TopicVote, new_id
from courseflow.infrastructure.database.transaction import atomic
from courseflow.models.course import ModuleCreateRequest, ModuleResponse

logger = logging.getLogger(__name__)


class ModuleService:
    """Service for course module operations.

    Attributes:
        db: Async database session.
        settings: Application settings.
    """

    def __init__(self, db: AsyncSession, settings: Settings | None = None) -> None:
        """Initialize module service.

        Args:
            db: Async database session.
            settings: Application settings. Defaults to get_settings().
        """
        self.db = db
        self.settings = settings or get_settings()

    async def list_modules(self, course_id: str) -> list[ModuleResponse]:
        """List a course's modules in order.

        Raises:
            EntityNotFoundError: If the course does not exist.
        """
        await get_course(self.db, course_id)
        modules = await list_modules(self.db, course_id)
        return [ModuleResponse.model_validate(module) for module in modules]

    async def add_module(
        self,
        course_id: str,
        request: ModuleCreateRequest,
    ) -> ModuleResponse:
        """Append a module to a course.

        Args:
            course_id: Course identifier.
            request: Module data.

        Returns:
            The new module, placed last.

        Raises:
            EntityNotFoundError: If the course does not exist.
            PreconditionFailedError: MAX_MODULES_REACHED if the course
                already carries the maximum number of modules.
        """
        max_modules = self.settings.voting.max_topics_per_course

        async with atomic(self.db):
            await get_course(self.db, course_id)
            existing = await count_modules(self.db, course_id)
            if existing >= max_modules:
                raise PreconditionFailedError(
                    ReasonCode.MAX_MODULES_REACHED,
                    f"Maximum {max_modules} modules per course",
                )

            module = Module(
                id=new_id(),
                course_id=course_id,
                title=request.title,
                description=request.description,
                order_index=existing,
                is_selected=False,
            )
            self.db.add(module)
            await self.db.flush()
            response = ModuleResponse.model_validate(module)

        logger.info("Added module: course=%s, module=%s", course_id, response.id)

        return response

    async def reorder_modules(
        self,
        course_id: str,
        module_ids: list[str],
    ) -> list[ModuleResponse]:
        """Rewrite the order of a course's modules.

        Args:
            course_id: Course identifier.
            module_ids: Every module id of the course, in the new order.

        Returns:
            Modules in the new order.

        Raises:
            EntityNotFoundError: If the course does not exist.
            ReferentialError: INVALID_MODULES unless module_ids is exactly a
                permutation of the course's modules.
        """
        async with atomic(self.db):
            await get_course(self.db, course_id)
            modules = {module.id: module for module in await list_modules(self.db, course_id)}

            if len(module_ids) != len(modules) or set(module_ids) != set(modules):
                raise ReferentialError(
                    ReasonCode.INVALID_MODULES,
                    "Module list must contain every module of the course exactly once",
                )

            for index, module_id in enumerate(module_ids):
                modules[module_id].order_index = index

            response = [ModuleResponse.model_validate(modules[m]) for m in module_ids]

        logger.info("Reordered modules: course=%s, modules=%d", course_id, len(module_ids))

        return response

    async def remove_module(self, module_id: str) -> None:
        """Delete a module and the votes cast for it.

        Args:
            module_id: Module identifier.

        Raises:
            EntityNotFoundError: If the module or its course does not exist.
            PreconditionFailedError: HAS_LESSONS if lessons reference the
                module, INSUFFICIENT_MODULES if a course in TOPIC_VOTING
                would drop below the minimum.
        """
        async with atomic(self.db):
            module = await self.db.get(Module, module_id)
            if module is None:
                raise EntityNotFoundError("Module", module_id)
            course = await get_course(self.db, module.course_id)
            course_id = course.id

            result = await self.db.execute(
                select(func.count())
                .select_from(Lesson)
                .where(Lesson.module_id == module_id, Lesson.deleted_at.is_(None))
            )
            if result.scalar_one() > 0:
                raise PreconditionFailedError(
                    ReasonCode.HAS_LESSONS,
                    "Cannot delete a module with scheduled lessons",
                )

            minimum = self.settings.voting.min_topics_for_course
            remaining = await count_modules(self.db, course_id) - 1
            if course.status == CourseStatus.TOPIC_VOTING.value and remaining < minimum:
                raise PreconditionFailedError(
                    ReasonCode.INSUFFICIENT_MODULES,
                    f"At least {minimum} modules required during topic voting",
                )

            await self.db.execute(delete(TopicVote).where(TopicVote.module_id == module_id))
            await self.db.execute(
                update(Lesson).where(Lesson.module_id == module_id).values(module_id=None)
            )
            await self.db.delete(module)
            await self.db.flush()

            for index, sibling in enumerate(await list_modules(self.db, course_id)):
                sibling.order_index = index

        logger.info("Removed module: course=%s, module=%s", course_id, module_id)
