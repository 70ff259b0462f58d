# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services of the course lifecycle engine.

Each service wraps one AsyncSession and owns the transaction of every
operation it exposes. CourseOrchestrator composes them.
"""
