# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure.

This package provides SQLAlchemy async connections, the ORM models of the
course lifecycle store and the transaction helpers used by the services.

Example:
    from courseflow.infrastructure.database import get_session, atomic

    async with get_session() as session:
        async with atomic(session):
            ...
"""

from courseflow.infrastructure.database.connection import (
    DatabaseError,
    check_database_connection,
    close_database,
    create_engine,
    get_session,
    get_sessionmaker,
    init_database,
)
from courseflow.infrastructure.database.transaction import atomic, replace_all

__all__ = [
    # Connection
    "DatabaseError",
    "check_database_connection",
    "close_database",
    "create_engine",
    "get_session",
    "get_sessionmaker",
    "init_database",
    # Transactions
    "atomic",
    "replace_all",
]
