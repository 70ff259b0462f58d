# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Topic voting domain."""

from courseflow.domains.voting.service import TopicVotingService

__all__ = ["TopicVotingService"]
