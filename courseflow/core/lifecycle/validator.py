# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Status transition validation.

Validation is a two-phase pipeline:

1. Structural filter: the transition table for the entity kind must list
   the requested state as a successor of the current state.
2. Guard chain: preconditions registered for (entity kind, requested state)
   run in declaration order against pre-loaded aggregates.

A structurally illegal request never reaches phase 2.

Example:
    >>> validator = StatusTransitionValidator()
    >>> validator.validate(EntityKind.COURSE, "DRAFT", "ARCHIVED").allowed
    False
"""

import logging
from dataclasses import dataclass
from enum import Enum

from courseflow.core.config import VotingSettings
from courseflow.core.lifecycle.errors import (
    InvalidTransitionError,
    PreconditionFailedError,
    ReasonCode,
)
from courseflow.core.lifecycle.guards import (
    GuardContext,
    GuardRegistry,
    build_default_guards,
)
from courseflow.core.lifecycle.states import (
    EntityKind,
    TRANSITION_TABLES,
    coerce_state,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionDecision:
    """Result of validating a transition request.

    Attributes:
        allowed: Whether the transition may proceed.
        reason: Reason code when denied.
        message: Human-readable explanation when denied.
    """

    allowed: bool
    reason: ReasonCode | None = None
    message: str | None = None

    @classmethod
    def allow(cls) -> "TransitionDecision":
        """Create an allowing decision."""
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: ReasonCode, message: str) -> "TransitionDecision":
        """Create a denying decision."""
        return cls(allowed=False, reason=reason, message=message)


def validate(
    entity_kind: EntityKind,
    current_state: object,
    requested_state: object,
) -> TransitionDecision:
    """Check a transition against the static table only.

    Unknown current or requested states are denied like any other
    missing edge.

    Args:
        entity_kind: Kind selecting the transition table.
        current_state: Current state (enum member or string value).
        requested_state: Requested state (enum member or string value).

    Returns:
        Allowing decision, or a denial with INVALID_STATUS_TRANSITION.
    """
    current = coerce_state(entity_kind, current_state)
    requested = coerce_state(entity_kind, requested_state)

    if current is not None and requested is not None:
        if requested in TRANSITION_TABLES[entity_kind][current]:
            return TransitionDecision.allow()

    current_value = getattr(current_state, "value", current_state)
    requested_value = getattr(requested_state, "value", requested_state)
    return TransitionDecision.deny(
        ReasonCode.INVALID_STATUS_TRANSITION,
        f"Cannot transition {entity_kind.value} from {current_value} to {requested_value}",
    )


class StatusTransitionValidator:
    """Table-driven validator with a pluggable guard chain.

    Attributes:
        guards: Registry consulted after the table check passes.
    """

    def __init__(
        self,
        guards: GuardRegistry | None = None,
        voting: VotingSettings | None = None,
    ) -> None:
        """Initialize the validator.

        Args:
            guards: Guard registry. Defaults to the standard guards built
                from the voting settings.
            voting: Voting rules used to build the default guards.
        """
        if guards is None:
            voting = voting or VotingSettings()
            guards = build_default_guards(voting.min_topics_for_course)
        self.guards = guards

    def validate(
        self,
        entity_kind: EntityKind,
        current_state: object,
        requested_state: object,
    ) -> TransitionDecision:
        """Structural check only. See module-level validate()."""
        return validate(entity_kind, current_state, requested_state)

    def check(
        self,
        entity_kind: EntityKind,
        current_state: object,
        requested_state: object,
        context: GuardContext | None = None,
    ) -> TransitionDecision:
        """Run the table check, then the guard chain.

        Args:
            entity_kind: Kind selecting the table and guards.
            current_state: Current state.
            requested_state: Requested state.
            context: Aggregates for the guards. Defaults to an empty context.

        Returns:
            Transition decision.
        """
        decision = validate(entity_kind, current_state, requested_state)
        if not decision.allowed:
            return decision

        failure = self.guards.evaluate(
            entity_kind,
            coerce_state(entity_kind, current_state),
            coerce_state(entity_kind, requested_state),
            context or GuardContext(),
        )
        if failure is not None:
            return TransitionDecision.deny(failure.reason, failure.message)
        return TransitionDecision.allow()

    def ensure(
        self,
        entity_kind: EntityKind,
        current_state: object,
        requested_state: object,
        context: GuardContext | None = None,
    ) -> Enum:
        """Validate a transition and raise when it is denied.

        Returns:
            The requested state as an enum member.

        Raises:
            InvalidTransitionError: If the table has no such edge.
            PreconditionFailedError: If a guard refused the transition.
        """
        decision = self.check(entity_kind, current_state, requested_state, context)
        if decision.allowed:
            return coerce_state(entity_kind, requested_state)

        logger.warning(
            "Denied %s transition %s -> %s: %s",
            entity_kind.value,
            getattr(current_state, "value", current_state),
            getattr(requested_state, "value", requested_state),
            decision.reason.value,
        )
        if decision.reason == ReasonCode.INVALID_STATUS_TRANSITION:
            raise InvalidTransitionError(entity_kind.value, current_state, requested_state)
        raise PreconditionFailedError(decision.reason, decision.message)
