# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School, student and teacher models.

Students and teachers belong to exactly one school; admission and teacher
assignment compare their school_id with the course's.
"""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from courseflow.infrastructure.database.models.base import (
    Base,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


class School(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A tenant school."""

    __tablename__ = "schools"

    name: Mapped[str] = mapped_column(String(200), nullable=False)


class Student(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    """A student of a school."""

    __tablename__ = "students"

    school_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("schools.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)


class Teacher(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin, Base):
    """A teacher of a school."""

    __tablename__ = "teachers"

    school_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("schools.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
