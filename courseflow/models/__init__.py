# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic request/response schemas consumed by the surrounding CRUD layer."""

from courseflow.models.common import ORMModel, StatusChangeRequest, StatusChangeResponse
from courseflow.models.course import (
    CourseCreateRequest,
    CourseResponse,
    LessonResponse,
    ModuleCreateRequest,
    ModuleResponse,
    ReorderModulesRequest,
    ScheduleLessonsRequest,
    ScheduleResponse,
    TeacherAssignmentRequest,
    TeacherAssignmentResponse,
)
from courseflow.models.enrollment import (
    AdmitStudentRequest,
    BulkAdmissionResponse,
    BulkAdmitRequest,
    EnrollmentResponse,
)
from courseflow.models.voting import (
    FinalizeVotingResponse,
    ModuleTallyResponse,
    SubmitVotesRequest,
    VoteSubmissionResponse,
    VotingOverviewResponse,
    VotingResultsResponse,
)

__all__ = [
    # Common
    "ORMModel",
    "StatusChangeRequest",
    "StatusChangeResponse",
    # Course
    "CourseCreateRequest",
    "CourseResponse",
    "ModuleCreateRequest",
    "ModuleResponse",
    "ReorderModulesRequest",
    "TeacherAssignmentRequest",
    "TeacherAssignmentResponse",
    "ScheduleLessonsRequest",
    "ScheduleResponse",
    "LessonResponse",
    # Enrollment
    "AdmitStudentRequest",
    "BulkAdmitRequest",
    "EnrollmentResponse",
    "BulkAdmissionResponse",
    # Voting
    "SubmitVotesRequest",
    "VoteSubmissionResponse",
    "ModuleTallyResponse",
    "VotingOverviewResponse",
    "VotingResultsResponse",
    "FinalizeVotingResponse",
]
