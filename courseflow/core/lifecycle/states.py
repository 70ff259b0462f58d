# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""State enums and transition tables for lifecycle-managed entities.

Each entity kind has its own state enum and a static table mapping every
state to the set of states directly reachable from it. Terminal states map
to an empty set. The tables hold no behavior; validation lives in
courseflow.core.lifecycle.validator.
"""

from enum import Enum


class EntityKind(str, Enum):
    """Entity kinds whose status is governed by a transition table."""

    COURSE = "course"
    LESSON = "lesson"
    ENROLLMENT = "enrollment"
    PAYMENT = "payment"


class CourseStatus(str, Enum):
    """Course workflow states."""

    DRAFT = "DRAFT"
    TOPIC_VOTING = "TOPIC_VOTING"
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    ARCHIVED = "ARCHIVED"


class LessonStatus(str, Enum):
    """Lesson delivery states."""

    SCHEDULED = "SCHEDULED"
    REMINDER_SENT = "REMINDER_SENT"
    QUESTIONS_REQUESTED = "QUESTIONS_REQUESTED"
    QUESTIONS_READY = "QUESTIONS_READY"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FEEDBACK_PENDING = "FEEDBACK_PENDING"
    FEEDBACK_SENT = "FEEDBACK_SENT"
    CANCELLED = "CANCELLED"


class EnrollmentStatus(str, Enum):
    """Enrollment states."""

    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    COMPLETED = "COMPLETED"
    DROPPED = "DROPPED"


class PaymentStatus(str, Enum):
    """Payment states, used both by payments and by enrollment.payment_status."""

    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    REFUNDED = "REFUNDED"


# Enrollment states that occupy a seat in the course
SEAT_HOLDING_STATUSES: frozenset[EnrollmentStatus] = frozenset(
    {EnrollmentStatus.PENDING, EnrollmentStatus.ACTIVE}
)


COURSE_TRANSITIONS: dict[CourseStatus, frozenset[CourseStatus]] = {
    CourseStatus.DRAFT: frozenset({CourseStatus.TOPIC_VOTING, CourseStatus.CANCELLED}),
    CourseStatus.TOPIC_VOTING: frozenset({CourseStatus.SCHEDULED, CourseStatus.CANCELLED}),
    CourseStatus.SCHEDULED: frozenset({CourseStatus.IN_PROGRESS, CourseStatus.CANCELLED}),
    CourseStatus.IN_PROGRESS: frozenset({CourseStatus.COMPLETED, CourseStatus.CANCELLED}),
    CourseStatus.COMPLETED: frozenset({CourseStatus.ARCHIVED}),
    CourseStatus.CANCELLED: frozenset({CourseStatus.ARCHIVED}),
    CourseStatus.ARCHIVED: frozenset(),
}

LESSON_TRANSITIONS: dict[LessonStatus, frozenset[LessonStatus]] = {
    LessonStatus.SCHEDULED: frozenset({LessonStatus.REMINDER_SENT, LessonStatus.CANCELLED}),
    LessonStatus.REMINDER_SENT: frozenset(
        {LessonStatus.QUESTIONS_REQUESTED, LessonStatus.IN_PROGRESS, LessonStatus.CANCELLED}
    ),
    LessonStatus.QUESTIONS_REQUESTED: frozenset(
        {LessonStatus.QUESTIONS_READY, LessonStatus.IN_PROGRESS, LessonStatus.CANCELLED}
    ),
    LessonStatus.QUESTIONS_READY: frozenset({LessonStatus.IN_PROGRESS, LessonStatus.CANCELLED}),
    LessonStatus.IN_PROGRESS: frozenset({LessonStatus.COMPLETED, LessonStatus.CANCELLED}),
    LessonStatus.COMPLETED: frozenset({LessonStatus.FEEDBACK_PENDING}),
    LessonStatus.FEEDBACK_PENDING: frozenset({LessonStatus.FEEDBACK_SENT}),
    LessonStatus.FEEDBACK_SENT: frozenset(),
    LessonStatus.CANCELLED: frozenset(),
}

ENROLLMENT_TRANSITIONS: dict[EnrollmentStatus, frozenset[EnrollmentStatus]] = {
    EnrollmentStatus.PENDING: frozenset({EnrollmentStatus.ACTIVE, EnrollmentStatus.DROPPED}),
    EnrollmentStatus.ACTIVE: frozenset(
        {EnrollmentStatus.COMPLETED, EnrollmentStatus.DROPPED, EnrollmentStatus.SUSPENDED}
    ),
    EnrollmentStatus.SUSPENDED: frozenset({EnrollmentStatus.ACTIVE, EnrollmentStatus.DROPPED}),
    EnrollmentStatus.COMPLETED: frozenset(),
    EnrollmentStatus.DROPPED: frozenset(),
}

PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset(
        {PaymentStatus.PARTIAL, PaymentStatus.PAID, PaymentStatus.OVERDUE}
    ),
    PaymentStatus.PARTIAL: frozenset({PaymentStatus.PAID, PaymentStatus.OVERDUE}),
    PaymentStatus.PAID: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.OVERDUE: frozenset({PaymentStatus.PARTIAL, PaymentStatus.PAID}),
    PaymentStatus.REFUNDED: frozenset(),
}

TRANSITION_TABLES: dict[EntityKind, dict] = {
    EntityKind.COURSE: COURSE_TRANSITIONS,
    EntityKind.LESSON: LESSON_TRANSITIONS,
    EntityKind.ENROLLMENT: ENROLLMENT_TRANSITIONS,
    EntityKind.PAYMENT: PAYMENT_TRANSITIONS,
}

STATE_ENUMS: dict[EntityKind, type[Enum]] = {
    EntityKind.COURSE: CourseStatus,
    EntityKind.LESSON: LessonStatus,
    EntityKind.ENROLLMENT: EnrollmentStatus,
    EntityKind.PAYMENT: PaymentStatus,
}


def coerce_state(entity_kind: EntityKind, value: object) -> Enum | None:
    """Convert a raw state value into the entity kind's enum member.

    Args:
        entity_kind: Kind whose state enum is used.
        value: Enum member or its string value.

    Returns:
        The matching enum member, or None if the value is not a state of
        this kind.
    """
    enum_cls = STATE_ENUMS[entity_kind]
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


def allowed_transitions(entity_kind: EntityKind, current_state: object) -> frozenset:
    """Get the states directly reachable from a state.

    Unknown states have no successors.
    """
    state = coerce_state(entity_kind, current_state)
    if state is None:
        return frozenset()
    return TRANSITION_TABLES[entity_kind][state]
