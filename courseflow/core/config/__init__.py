# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for the course lifecycle engine.

Example:
    >>> from courseflow.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.schedule.frequency
    'weekly'
"""

from courseflow.core.config.settings import (
    DatabaseSettings,
    EnrollmentSettings,
    ScheduleSettings,
    Settings,
    VotingSettings,
    clear_settings_cache,
    get_settings,
    parse_time_of_day,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "VotingSettings",
    "ScheduleSettings",
    "EnrollmentSettings",
    # Helpers
    "parse_time_of_day",
]
