# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared schema building blocks."""

from pydantic import BaseModel, ConfigDict, Field

from courseflow.core.lifecycle.states import EntityKind


class ORMModel(BaseModel):
    """Base for responses built from ORM rows."""

    model_config = ConfigDict(from_attributes=True)


class StatusChangeRequest(BaseModel):
    """Request to move an entity to a new status."""

    status: str = Field(description="Requested status value")


class StatusChangeResponse(BaseModel):
    """Outcome of a successful status change."""

    entity_kind: EntityKind
    entity_id: str
    previous_status: str
    status: str
