# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment admission schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from courseflow.models.common import ORMModel


class AdmitStudentRequest(BaseModel):
    """Single admission request.

    amount_due overrides the course price for this student.
    """

    student_id: str
    amount_due: Decimal | None = Field(default=None, ge=0)
    notes: str | None = Field(default=None, max_length=1000)


class BulkAdmitRequest(BaseModel):
    """Bulk admission request."""

    student_ids: list[str] = Field(min_length=1)
    amount_due: Decimal | None = Field(default=None, ge=0)


class EnrollmentResponse(ORMModel):
    """Enrollment as stored."""

    id: str
    student_id: str
    course_id: str
    status: str
    payment_status: str
    amount_due: Decimal | None = None
    amount_paid: Decimal
    notes: str | None = None
    enrolled_at: datetime
    completed_at: datetime | None = None


class BulkAdmissionResponse(BaseModel):
    """Outcome of a bulk admission."""

    enrolled: list[str]
    skipped: list[str]
    total_enrolled: int
    total_skipped: int
