# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Process lifespan for applications embedding the engine.

Configures logging, opens the connection pool and closes it again on exit.

Example:
    async with lifespan() as settings:
        async with get_session() as session:
            orchestrator = CourseOrchestrator(session, settings=settings)
            await orchestrator.finalize_voting(course_id)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from courseflow.core.config import Settings, get_settings
from courseflow.infrastructure.database.connection import close_database, init_database
from courseflow.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(
    settings: Settings | None = None,
    create_schema: bool = False,
) -> AsyncIterator[Settings]:
    """Run the engine's startup and shutdown steps around a block.

    Args:
        settings: Application settings. Defaults to get_settings().
        create_schema: Create missing tables on startup.

    Yields:
        The settings in use.

    Raises:
        DatabaseError: If the connection pool cannot be created.
    """
    settings = settings or get_settings()
    setup_logging(settings)
    logger.info(
        "Starting courseflow: environment=%s, database=%s",
        settings.environment,
        "sqlite" if settings.database.is_sqlite else "postgresql",
    )

    await init_database(settings, create_schema=create_schema)
    try:
        yield settings
    finally:
        await close_database()
        logger.info("Stopped courseflow")
