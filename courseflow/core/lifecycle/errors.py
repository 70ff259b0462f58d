# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Reason codes and exceptions for lifecycle operations.

Every business failure carries a stable ReasonCode. The calling layer maps
codes to transport status codes; http_status on each exception is only a
hint for that mapping.

Categories:
- structural: illegal transition table edge
- precondition: a guard or business rule refused the operation
- referential: an id does not exist or belongs elsewhere
- conflict: the operation would duplicate existing state
- validation: malformed input
"""

from enum import Enum


class ReasonCode(str, Enum):
    """Stable reason codes surfaced to callers."""

    # Structural
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"

    # Precondition
    INSUFFICIENT_MODULES = "INSUFFICIENT_MODULES"
    NO_LESSONS = "NO_LESSONS"
    COURSE_FULL = "COURSE_FULL"
    INSUFFICIENT_CAPACITY = "INSUFFICIENT_CAPACITY"
    VOTING_CLOSED = "VOTING_CLOSED"
    NOT_ENROLLED = "NOT_ENROLLED"
    HAS_ACTIVE_ENROLLMENTS = "HAS_ACTIVE_ENROLLMENTS"
    HAS_PAYMENTS = "HAS_PAYMENTS"
    HAS_LESSONS = "HAS_LESSONS"
    MAX_MODULES_REACHED = "MAX_MODULES_REACHED"
    LESSON_IN_PROGRESS = "LESSON_IN_PROGRESS"

    # Referential
    NOT_FOUND = "NOT_FOUND"
    INVALID_MODULES = "INVALID_MODULES"
    INVALID_STUDENTS = "INVALID_STUDENTS"
    INVALID_TEACHERS = "INVALID_TEACHERS"
    SCHOOL_MISMATCH = "SCHOOL_MISMATCH"

    # Conflict
    ALREADY_ENROLLED = "ALREADY_ENROLLED"
    ALL_ALREADY_ENROLLED = "ALL_ALREADY_ENROLLED"

    # Validation
    INVALID_VOTE_COUNT = "INVALID_VOTE_COUNT"
    VALIDATION_ERROR = "VALIDATION_ERROR"


class LifecycleError(Exception):
    """Base exception for lifecycle operation failures.

    Attributes:
        reason: Stable reason code.
        message: Human-readable description.
        http_status: Suggested transport status code.
    """

    http_status: int = 400

    def __init__(
        self,
        reason: ReasonCode,
        message: str,
        http_status: int | None = None,
    ) -> None:
        """Initialize the lifecycle error.

        Args:
            reason: Stable reason code.
            message: Human-readable description.
            http_status: Overrides the class default status hint.
        """
        super().__init__(message)
        self.reason = reason
        self.message = message
        if http_status is not None:
            self.http_status = http_status

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"{self.reason.value}: {self.message}"


class InvalidTransitionError(LifecycleError):
    """Raised when a requested state is not reachable from the current one."""

    def __init__(self, entity_kind: str, current_state: object, requested_state: object) -> None:
        current = getattr(current_state, "value", current_state)
        requested = getattr(requested_state, "value", requested_state)
        super().__init__(
            ReasonCode.INVALID_STATUS_TRANSITION,
            f"Cannot transition {entity_kind} from {current} to {requested}",
        )
        self.entity_kind = entity_kind
        self.current_state = current
        self.requested_state = requested


class PreconditionFailedError(LifecycleError):
    """Raised when a business precondition refuses the operation."""

    pass


class ReferentialError(LifecycleError):
    """Raised when referenced entities are missing or belong elsewhere."""

    pass


class EntityNotFoundError(ReferentialError):
    """Raised when the target entity does not exist or is deleted."""

    http_status = 404

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(ReasonCode.NOT_FOUND, f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(LifecycleError):
    """Raised when the operation would duplicate existing state."""

    http_status = 409


class ValidationFailedError(LifecycleError):
    """Raised when input is malformed."""

    pass
