# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for database integration tests.

Provides an in-memory SQLite engine, a session and a small seeding helper.
Seed helpers return plain ids: a failed operation rolls the session back
and expires every loaded instance, so tests re-read state through the
session instead of holding on to ORM objects.
"""

from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from courseflow.core.config.settings import Settings
from courseflow.core.lifecycle.states import CourseStatus, EnrollmentStatus, PaymentStatus
from courseflow.domains.course.orchestrator import CourseOrchestrator
from courseflow.infrastructure.database.models import (
    Base,
    Course,
    CourseTeacher,
    Enrollment,
    Module,
    Payment,
    Progress,
    School,
    Student,
    Teacher,
    TopicVote,
)

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine for an in-memory database."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create async session configured like the application's."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def orchestrator(db_session: AsyncSession, test_settings: Settings) -> CourseOrchestrator:
    """Create an orchestrator over the test session."""
    return CourseOrchestrator(db_session, settings=test_settings)


class Seeder:
    """Inserts fixture rows and returns their ids."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _save(self, *rows) -> None:
        self.session.add_all(rows)
        await self.session.commit()

    async def school(self, name: str = "Liceo Galilei") -> str:
        school = School(name=name)
        await self._save(school)
        return school.id

    async def student(self, school_id: str, name: str = "Student") -> str:
        student = Student(school_id=school_id, name=name)
        await self._save(student)
        return student.id

    async def students(self, school_id: str, count: int) -> list[str]:
        rows = [Student(school_id=school_id, name=f"Student {i}") for i in range(count)]
        await self._save(*rows)
        return [row.id for row in rows]

    async def teacher(self, school_id: str, name: str = "Teacher") -> str:
        teacher = Teacher(school_id=school_id, name=name)
        await self._save(teacher)
        return teacher.id

    async def course(
        self,
        school_id: str,
        status: CourseStatus = CourseStatus.DRAFT,
        modules: int = 10,
        max_students: int = 10,
        price: Decimal | None = None,
    ) -> tuple[str, list[str]]:
        """Insert a course with modules titled "Module 0".."Module n-1"."""
        course = Course(
            school_id=school_id,
            name="Public Speaking",
            status=status.value,
            max_students=max_students,
            price=price,
        )
        await self._save(course)
        rows = [
            Module(course_id=course.id, title=f"Module {i}", order_index=i, is_selected=False)
            for i in range(modules)
        ]
        await self._save(*rows)
        return course.id, [row.id for row in rows]

    async def enrollment(
        self,
        course_id: str,
        student_id: str,
        status: EnrollmentStatus = EnrollmentStatus.ACTIVE,
    ) -> str:
        enrollment = Enrollment(
            course_id=course_id,
            student_id=student_id,
            status=status.value,
            payment_status=PaymentStatus.PENDING.value,
        )
        progress = Progress(course_id=course_id, student_id=student_id)
        await self._save(enrollment, progress)
        return enrollment.id

    async def vote(self, course_id: str, student_id: str, module_ids: list[str]) -> None:
        await self._save(
            *[
                TopicVote(course_id=course_id, student_id=student_id, module_id=module_id)
                for module_id in module_ids
            ]
        )

    async def payment(self, enrollment_id: str, amount: Decimal = Decimal("50.00")) -> str:
        payment = Payment(enrollment_id=enrollment_id, amount=amount)
        await self._save(payment)
        return payment.id

    async def assign(self, course_id: str, teacher_id: str, is_primary: bool = True) -> None:
        await self._save(
            CourseTeacher(course_id=course_id, teacher_id=teacher_id, is_primary=is_primary)
        )


@pytest.fixture
def seed(db_session: AsyncSession) -> Seeder:
    """Provide the seeding helper."""
    return Seeder(db_session)
