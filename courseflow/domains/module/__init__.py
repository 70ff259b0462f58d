# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course module domain."""

from courseflow.domains.module.service import ModuleService

__all__ = ["ModuleService"]
