# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Topic voting service.

This module provides the TopicVotingService class for:
- Submitting (and resubmitting) a student's vote set
- Finalizing a voting round into the selected modules
- Voting overview and results
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from courseflow.core.config import Settings, get_settings
from courseflow.core.lifecycle.errors import (
    PreconditionFailedError,
    ReasonCode,
    ReferentialError,
)
from courseflow.core.lifecycle.states import CourseStatus, EnrollmentStatus, EntityKind
from courseflow.core.lifecycle.validator import StatusTransitionValidator
from courseflow.core.lifecycle.voting import (
    ModuleTally,
    check_vote_selection,
    rank_tallies,
    select_top_modules,
    tally_votes,
)
from courseflow.domains.queries import get_course, list_modules, load_course_context
from courseflow.infrastructure.database.models import Enrollment, Module, TopicVote
from courseflow.infrastructure.database.transaction import atomic, replace_all
from courseflow.models.course import ModuleResponse
from courseflow.models.voting import (
    FinalizeVotingResponse,
    ModuleTallyResponse,
    VoteSubmissionResponse,
    VotingOverviewResponse,
    VotingResultsResponse,
)

logger = logging.getLogger(__name__)


class TopicVotingService:
    """Service for topic voting on course modules.

    Students of a course in TOPIC_VOTING vote for exactly
    voting.required_topics modules. Finalization selects the most voted
    modules and moves the course to SCHEDULED.

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
        """Initialize topic voting service.

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
    def required_topics(self) -> int:
        """Number of modules a student votes for."""
        return self.settings.voting.required_topics

    async def submit_votes(
        self,
        student_id: str,
        course_id: str,
        module_ids: list[str],
    ) -> VoteSubmissionResponse:
        """Replace a student's vote set for a course.

        Args:
            student_id: Voting student.
            course_id: Course identifier.
            module_ids: Exactly required_topics distinct module ids.

        Returns:
            The stored vote set.

        Raises:
            ValidationFailedError: INVALID_VOTE_COUNT on a malformed set.
            EntityNotFoundError: If the course does not exist.
            PreconditionFailedError: VOTING_CLOSED if the course is not in
                TOPIC_VOTING, NOT_ENROLLED if the student holds no active
                enrollment.
            ReferentialError: INVALID_MODULES if a module is not part of
                the course.
        """
        ids = check_vote_selection(module_ids, self.required_topics)

        async with atomic(self.db):
            course = await get_course(self.db, course_id)
            if course.status != CourseStatus.TOPIC_VOTING.value:
                raise PreconditionFailedError(
                    ReasonCode.VOTING_CLOSED,
                    "Voting is not open for this course",
                )

            await self._ensure_active_enrollment(student_id, course_id)

            result = await self.db.execute(
                select(Module.id).where(Module.course_id == course_id, Module.id.in_(ids))
            )
            if len(set(result.scalars().all())) != len(ids):
                raise ReferentialError(
                    ReasonCode.INVALID_MODULES,
                    "Some modules do not belong to this course",
                )

            await replace_all(
                self.db,
                TopicVote,
                [TopicVote.student_id == student_id, TopicVote.course_id == course_id],
                [
                    TopicVote(student_id=student_id, course_id=course_id, module_id=module_id)
                    for module_id in ids
                ],
            )

        logger.info(
            "Votes submitted: student=%s, course=%s, modules=%d",
            student_id,
            course_id,
            len(ids),
        )

        return VoteSubmissionResponse(
            course_id=course_id,
            student_id=student_id,
            module_ids=ids,
            voted=len(ids),
        )

    async def finalize_voting(self, course_id: str) -> FinalizeVotingResponse:
        """Close voting and select the winning modules.

        Modules are ranked by distinct voters, ties broken by order_index.
        The top required_topics are marked selected, every other module is
        unmarked, and the course moves to SCHEDULED. Everything commits
        together.

        Args:
            course_id: Course identifier.

        Returns:
            Selected modules in rank order and all modules in order.

        Raises:
            EntityNotFoundError: If the course does not exist.
            InvalidTransitionError: If the course is not in TOPIC_VOTING.
        """
        async with atomic(self.db):
            course = await get_course(self.db, course_id)
            context = await load_course_context(self.db, course)
            target = self.validator.ensure(
                EntityKind.COURSE,
                course.status,
                CourseStatus.SCHEDULED,
                context,
            )

            modules = await list_modules(self.db, course_id)
            tallies = tally_votes(modules, await self._load_votes(course_id))
            winners = select_top_modules(tallies, self.required_topics)
            winner_ids = {tally.module_id for tally in winners}

            for module in modules:
                module.is_selected = module.id in winner_ids
            course.status = target.value

            by_id = {module.id: module for module in modules}
            response = FinalizeVotingResponse(
                course_id=course_id,
                status=course.status,
                selected_modules=[
                    ModuleResponse.model_validate(by_id[tally.module_id]) for tally in winners
                ],
                all_modules=[ModuleResponse.model_validate(module) for module in modules],
            )

        logger.info(
            "Voting finalized: course=%s, selected=%d of %d",
            course_id,
            len(winners),
            len(modules),
        )

        return response

    async def get_voting_overview(
        self,
        course_id: str,
        student_id: str,
    ) -> VotingOverviewResponse:
        """Get the voting state of a course as seen by one student.

        Args:
            course_id: Course identifier.
            student_id: Student identifier.

        Returns:
            Modules with their current counts and the student's vote set.

        Raises:
            EntityNotFoundError: If the course does not exist.
        """
        course = await get_course(self.db, course_id)
        modules = await list_modules(self.db, course_id)
        votes = await self._load_votes(course_id)
        tallies = tally_votes(modules, votes)

        student_modules = {module_id for voter, module_id in votes if voter == student_id}
        student_votes = [module.id for module in modules if module.id in student_modules]

        return VotingOverviewResponse(
            course_id=course.id,
            course_name=course.name,
            modules=self._with_ranks(tallies),
            has_voted=bool(student_votes),
            student_votes=student_votes,
            required_votes=self.required_topics,
        )

    async def get_results(self, course_id: str) -> VotingResultsResponse:
        """Get the current ranking of a course's modules.

        Raises:
            EntityNotFoundError: If the course does not exist.
        """
        await get_course(self.db, course_id)
        modules = await list_modules(self.db, course_id)
        votes = await self._load_votes(course_id)
        ranking = rank_tallies(tally_votes(modules, votes))

        return VotingResultsResponse(
            course_id=course_id,
            total_voters=len({student_id for student_id, _ in votes}),
            ranking=self._with_ranks(ranking),
        )

    async def _ensure_active_enrollment(self, student_id: str, course_id: str) -> None:
        """Raise NOT_ENROLLED unless the student holds an ACTIVE enrollment."""
        result = await self.db.execute(
            select(Enrollment.id).where(
                Enrollment.student_id == student_id,
                Enrollment.course_id == course_id,
                Enrollment.status == EnrollmentStatus.ACTIVE.value,
            )
        )
        if result.scalar_one_or_none() is None:
            raise PreconditionFailedError(
                ReasonCode.NOT_ENROLLED,
                "Student is not enrolled in this course",
                http_status=403,
            )

    async def _load_votes(self, course_id: str) -> list[tuple[str, str]]:
        """Get (student_id, module_id) pairs of a course."""
        result = await self.db.execute(
            select(TopicVote.student_id, TopicVote.module_id).where(
                TopicVote.course_id == course_id
            )
        )
        return [(row.student_id, row.module_id) for row in result.all()]

    @staticmethod
    def _with_ranks(tallies: list[ModuleTally]) -> list[ModuleTallyResponse]:
        """Attach 1-based selection ranks, keeping the given order."""
        ranks = {tally.module_id: rank for rank, tally in enumerate(rank_tallies(tallies), 1)}
        return [
            ModuleTallyResponse(
                module_id=tally.module_id,
                title=tally.title,
                order_index=tally.order_index,
                votes=tally.votes,
                rank=ranks[tally.module_id],
            )
            for tally in tallies
        ]
