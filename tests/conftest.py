# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests (pure lifecycle components, mocked sessions)
- Integration tests (services against an in-memory SQLite database)
"""

from typing import Any

import pytest

from courseflow.core.config.settings import (
    DatabaseSettings,
    ScheduleSettings,
    Settings,
)


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def test_environment() -> dict[str, str]:
    """Provide test environment variables.

    Returns:
        Dictionary of environment variables for testing.
    """
    return {
        "ENVIRONMENT": "test",
        "DEBUG": "true",
        "LOG_LEVEL": "DEBUG",
        "DATABASE_URL": TEST_DATABASE_URL,
        "VOTING_REQUIRED_TOPICS": "8",
        "VOTING_MIN_TOPICS_FOR_COURSE": "10",
        "SCHEDULE_TIMEZONE": "UTC",
    }


@pytest.fixture
def test_settings() -> Settings:
    """Provide settings for tests.

    Lessons are generated in UTC so stored times equal the requested
    wall-clock times.
    """
    return Settings(
        environment="test",
        database=DatabaseSettings(url=TEST_DATABASE_URL),
        schedule=ScheduleSettings(timezone="UTC"),
    )


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (runs against a database engine)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def sample_student_id() -> str:
    """Provide a sample student ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440001"


@pytest.fixture
def sample_course_id() -> str:
    """Provide a sample course ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440002"


@pytest.fixture
def sample_course_data() -> dict[str, Any]:
    """Provide sample course data for testing."""
    return {
        "school_id": "550e8400-e29b-41d4-a716-446655440000",
        "name": "Public Speaking",
        "description": "Speaking in front of an audience",
        "max_students": 10,
        "price": "120.00",
        "currency": "EUR",
    }
