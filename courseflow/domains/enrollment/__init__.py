# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment admission domain."""

from courseflow.domains.enrollment.service import EnrollmentAdmissionService

__all__ = ["EnrollmentAdmissionService"]
