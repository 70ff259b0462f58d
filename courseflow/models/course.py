# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course, module, lesson and schedule schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from courseflow.core.config.settings import parse_time_of_day
from courseflow.models.common import ORMModel


class ModuleCreateRequest(BaseModel):
    """A module authored together with, or added to, a course."""

    title: str = Field(min_length=2, max_length=200)
    description: str | None = Field(default=None, max_length=2000)


class CourseCreateRequest(BaseModel):
    """Course authoring request.

    Modules are optional; when given they are stored in request order.
    """

    school_id: str
    name: str = Field(min_length=2, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    max_students: int | None = Field(default=None, ge=1)
    price: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    start_date: datetime | None = None
    end_date: datetime | None = None
    modules: list[ModuleCreateRequest] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_dates(self) -> "CourseCreateRequest":
        """Start date must not be after end date."""
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class ModuleResponse(ORMModel):
    """Module as stored."""

    id: str
    course_id: str
    title: str
    description: str | None = None
    order_index: int
    is_selected: bool


class CourseResponse(ORMModel):
    """Course as stored."""

    id: str
    school_id: str
    name: str
    description: str | None = None
    status: str
    max_students: int
    price: Decimal | None = None
    currency: str
    start_date: datetime | None = None
    end_date: datetime | None = None
    modules: list[ModuleResponse] = Field(default_factory=list)


class ReorderModulesRequest(BaseModel):
    """New module order: every module id of the course, in the desired order."""

    module_ids: list[str] = Field(min_length=1)


class TeacherAssignmentRequest(BaseModel):
    """Full replacement of a course's teacher assignments."""

    teacher_ids: list[str] = Field(min_length=1)
    primary_teacher_id: str | None = None


class TeacherAssignmentResponse(ORMModel):
    """One teacher assignment."""

    course_id: str
    teacher_id: str
    is_primary: bool


class ScheduleLessonsRequest(BaseModel):
    """Lesson schedule parameters.

    Omitted values fall back to the configured schedule defaults
    (weekly, 10:00, skip weekends, 10 lessons, 60 minutes).
    """

    start_date: date
    frequency: Literal["daily", "weekly", "biweekly"] | None = None
    preferred_time: str | None = None
    skip_weekends: bool | None = None
    number_of_lessons: int | None = None
    duration: int | None = None

    @field_validator("preferred_time")
    @classmethod
    def validate_preferred_time(cls, value: str | None) -> str | None:
        """Reject malformed time-of-day strings."""
        if value is not None:
            parse_time_of_day(value)
        return value


class LessonResponse(ORMModel):
    """Lesson as stored or generated."""

    id: str | None = None
    course_id: str
    lesson_number: int
    title: str
    scheduled_at: datetime
    duration: int
    module_id: str | None = None
    status: str


class ScheduleResponse(BaseModel):
    """Result of generating a course schedule."""

    course_id: str
    start_date: datetime
    end_date: datetime
    lessons: list[LessonResponse]
