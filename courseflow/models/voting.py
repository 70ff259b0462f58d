# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Topic voting schemas."""

from pydantic import BaseModel, Field

from courseflow.models.course import ModuleResponse


class SubmitVotesRequest(BaseModel):
    """A student's complete vote set for one course."""

    module_ids: list[str] = Field(description="Exactly the required number of distinct module ids")


class VoteSubmissionResponse(BaseModel):
    """Stored vote set after a submission."""

    course_id: str
    student_id: str
    module_ids: list[str]
    voted: int


class ModuleTallyResponse(BaseModel):
    """Vote count of one module."""

    module_id: str
    title: str
    order_index: int
    votes: int
    rank: int


class VotingOverviewResponse(BaseModel):
    """What a student sees while voting is open."""

    course_id: str
    course_name: str
    modules: list[ModuleTallyResponse]
    has_voted: bool
    student_votes: list[str]
    required_votes: int


class VotingResultsResponse(BaseModel):
    """Current ranking of a course's modules."""

    course_id: str
    total_voters: int
    ranking: list[ModuleTallyResponse]


class FinalizeVotingResponse(BaseModel):
    """Outcome of closing a voting round."""

    course_id: str
    status: str
    selected_modules: list[ModuleResponse]
    all_modules: list[ModuleResponse]
