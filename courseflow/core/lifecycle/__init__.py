# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course lifecycle core.

Pure, store-independent building blocks:
- states: state enums and transition tables for course, lesson,
  enrollment and payment
- validator: two-phase transition validation (table, then guards)
- guards: precondition guards keyed by (entity kind, target state)
- voting: topic vote tally and top-K selection
- schedule: deterministic lesson schedule generation
- capacity: enrollment capacity rules
- errors: reason codes and typed exceptions
"""

from courseflow.core.lifecycle.capacity import (
    BulkAdmissionPlan,
    check_single_admission,
    initial_payment_status,
    plan_bulk_admission,
    remaining_seats,
)
from courseflow.core.lifecycle.errors import (
    ConflictError,
    EntityNotFoundError,
    InvalidTransitionError,
    LifecycleError,
    PreconditionFailedError,
    ReasonCode,
    ReferentialError,
    ValidationFailedError,
)
from courseflow.core.lifecycle.guards import (
    GuardContext,
    GuardFailure,
    GuardRegistry,
    build_default_guards,
)
from courseflow.core.lifecycle.schedule import (
    LessonDescriptor,
    ScheduleFrequency,
    generate_schedule,
)
from courseflow.core.lifecycle.states import (
    COURSE_TRANSITIONS,
    ENROLLMENT_TRANSITIONS,
    LESSON_TRANSITIONS,
    PAYMENT_TRANSITIONS,
    SEAT_HOLDING_STATUSES,
    TRANSITION_TABLES,
    CourseStatus,
    EnrollmentStatus,
    EntityKind,
    LessonStatus,
    PaymentStatus,
    allowed_transitions,
)
from courseflow.core.lifecycle.validator import (
    StatusTransitionValidator,
    TransitionDecision,
    validate,
)
from courseflow.core.lifecycle.voting import (
    ModuleTally,
    check_vote_selection,
    rank_tallies,
    select_top_modules,
    tally_votes,
)

__all__ = [
    # States
    "EntityKind",
    "CourseStatus",
    "LessonStatus",
    "EnrollmentStatus",
    "PaymentStatus",
    "SEAT_HOLDING_STATUSES",
    "COURSE_TRANSITIONS",
    "LESSON_TRANSITIONS",
    "ENROLLMENT_TRANSITIONS",
    "PAYMENT_TRANSITIONS",
    "TRANSITION_TABLES",
    "allowed_transitions",
    # Validation
    "StatusTransitionValidator",
    "TransitionDecision",
    "validate",
    "GuardContext",
    "GuardFailure",
    "GuardRegistry",
    "build_default_guards",
    # Voting
    "ModuleTally",
    "check_vote_selection",
    "tally_votes",
    "rank_tallies",
    "select_top_modules",
    # Schedule
    "LessonDescriptor",
    "ScheduleFrequency",
    "generate_schedule",
    # Capacity
    "BulkAdmissionPlan",
    "check_single_admission",
    "plan_bulk_admission",
    "remaining_seats",
    "initial_payment_status",
    # Errors
    "ReasonCode",
    "LifecycleError",
    "InvalidTransitionError",
    "PreconditionFailedError",
    "ReferentialError",
    "EntityNotFoundError",
    "ConflictError",
    "ValidationFailedError",
]
