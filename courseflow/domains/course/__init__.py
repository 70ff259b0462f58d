# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course domain: course aggregate service and the lifecycle orchestrator."""

from courseflow.domains.course.orchestrator import CourseOrchestrator
from courseflow.domains.course.service import CourseService

__all__ = ["CourseOrchestrator", "CourseService"]
