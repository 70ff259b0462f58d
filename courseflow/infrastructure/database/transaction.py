# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Transaction boundary and collection replacement helpers.

Every multi-step lifecycle operation runs inside atomic(): all writes of
the operation commit together or not at all.

Child collections owned by an aggregate (a student's votes in a course, a
course's lessons, a course's teacher assignments) are never patched row by
row. replace_all() deletes the whole collection and inserts the new one
within the caller's transaction, so resubmitting the same collection is
idempotent.

Example:
    async with atomic(session):
        await replace_all(
            session,
            TopicVote,
            [TopicVote.student_id == student_id, TopicVote.course_id == course_id],
            [TopicVote(student_id=student_id, course_id=course_id, module_id=m) for m in ids],
        )
"""

from collections.abc import Sequence
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, TypeVar

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from courseflow.infrastructure.database.connection import DatabaseError
from courseflow.infrastructure.database.models import Base

ModelT = TypeVar("ModelT", bound=Base)


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit on success, roll back on any exception.

    SQLAlchemy failures surface as DatabaseError; business exceptions
    propagate unchanged after the rollback.

    Yields:
        The same session.
    """
    try:
        yield session
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        raise DatabaseError("Transaction failed", e) from e
    except Exception:
        await session.rollback()
        raise


async def replace_all(
    session: AsyncSession,
    model: type[ModelT],
    criteria: Sequence[Any],
    items: Sequence[ModelT],
) -> list[ModelT]:
    """Replace a whole child collection.

    Args:
        session: Session inside an open transaction.
        model: Mapped class of the collection rows.
        criteria: WHERE clauses selecting the existing collection.
        items: New rows.

    Returns:
        The inserted rows, flushed.
    """
    await session.execute(delete(model).where(*criteria))
    session.add_all(items)
    await session.flush()
    return list(items)
