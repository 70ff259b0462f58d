# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course lifecycle orchestration engine.

Status workflows for courses, lessons, enrollments and payments, topic
voting, lesson scheduling and capacity-guarded admission.
"""

__version__ = "0.1.0"
