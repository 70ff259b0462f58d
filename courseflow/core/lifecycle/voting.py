# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Topic voting tally and selection.

Pure functions shared by TopicVotingService:
- check_vote_selection: a submission must name exactly the required number
  of distinct modules
- tally_votes: per-module count of distinct voting students
- rank_tallies / select_top_modules: deterministic ordering by vote count
  descending, ties broken by ascending order_index
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol

from courseflow.core.lifecycle.errors import ReasonCode, ValidationFailedError


class VotableModule(Protocol):
    """Anything with an id, a title and an order index, e.g. a Module row."""

    id: str
    title: str
    order_index: int


@dataclass(frozen=True)
class ModuleTally:
    """Vote count for one module.

    Attributes:
        module_id: Module identifier.
        title: Module title.
        order_index: Authoring position, used to break ties.
        votes: Number of distinct students who voted for the module.
    """

    module_id: str
    title: str
    order_index: int
    votes: int


def check_vote_selection(module_ids: Sequence[str], required_topics: int) -> list[str]:
    """Validate the shape of a vote submission.

    Args:
        module_ids: Submitted module ids.
        required_topics: Exact number of distinct modules expected.

    Returns:
        The ids in submission order.

    Raises:
        ValidationFailedError: With INVALID_VOTE_COUNT if the submission does
            not name exactly required_topics distinct modules.
    """
    ids = list(module_ids)
    if len(ids) != required_topics or len(set(ids)) != required_topics:
        raise ValidationFailedError(
            ReasonCode.INVALID_VOTE_COUNT,
            f"Must select exactly {required_topics} modules",
        )
    return ids


def tally_votes(
    modules: Iterable[VotableModule],
    votes: Iterable[tuple[str, str]],
) -> list[ModuleTally]:
    """Count distinct voting students per module.

    Args:
        modules: Modules of the course.
        votes: (student_id, module_id) pairs. Votes for modules outside the
            course are ignored.

    Returns:
        One tally per module, in order_index order.
    """
    voters: dict[str, set[str]] = {}
    for student_id, module_id in votes:
        voters.setdefault(module_id, set()).add(student_id)

    tallies = [
        ModuleTally(
            module_id=module.id,
            title=module.title,
            order_index=module.order_index,
            votes=len(voters.get(module.id, ())),
        )
        for module in modules
    ]
    tallies.sort(key=lambda tally: tally.order_index)
    return tallies


def rank_tallies(tallies: Iterable[ModuleTally]) -> list[ModuleTally]:
    """Order tallies by votes descending, then order_index ascending."""
    return sorted(tallies, key=lambda tally: (-tally.votes, tally.order_index))


def select_top_modules(tallies: Iterable[ModuleTally], required_topics: int) -> list[ModuleTally]:
    """Pick the winning modules of a voting round.

    Args:
        tallies: Tallies of every module of the course.
        required_topics: Number of modules to select.

    Returns:
        The top required_topics tallies in rank order. Fewer are returned
        when the course has fewer modules.
    """
    return rank_tallies(tallies)[:required_topics]
