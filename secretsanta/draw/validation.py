"""Invariant checks over a complete assignment set for one group."""

from __future__ import annotations

from collections import Counter
from typing import Hashable, Iterable, Sequence

from ..errors import AssignmentInvariantError


def follow_cycle(pairs: Iterable[tuple[Hashable, Hashable]], start: Hashable) -> list:
    """Return the givers visited by following giver -> receiver from ``start``.

    The walk stops when it returns to ``start`` or hits someone without an
    outgoing assignment.
    """
    successor = dict(pairs)
    visited = [start]
    current = successor.get(start)
    while current is not None and current != start:
        if current in visited:
            # Entered a loop that does not contain ``start``.
            break
        visited.append(current)
        current = successor.get(current)
    return visited


def validate_assignments(
    member_ids: Iterable[Hashable],
    pairs: Sequence[tuple[Hashable, Hashable]],
    *,
    require_single_cycle: bool = True,
) -> None:
    """Check that ``pairs`` is a valid draw over ``member_ids``.

    Parameters
    ----------
    member_ids : Iterable[Hashable]
        Every participant of the group, exactly once each.
    pairs : Sequence[tuple[Hashable, Hashable]]
        ``(giver_id, receiver_id)`` tuples of the draw.
    require_single_cycle : bool, default: True
        Also require that the pairs form one cycle through every member.

    Raises
    ------
    AssignmentInvariantError
        If a member gives or receives zero or several times, an unknown id
        appears, somebody is assigned to themselves, or (when required) the
        pairs split into more than one cycle.
    """
    members = list(member_ids)
    expected = set(members)
    if len(expected) != len(members):
        raise AssignmentInvariantError("member ids must be unique")

    if len(pairs) != len(expected):
        raise AssignmentInvariantError(
            f"expected {len(expected)} assignments, got {len(pairs)}"
        )

    givers = Counter(giver for giver, _ in pairs)
    receivers = Counter(receiver for _, receiver in pairs)
    for side, counts in (("giver", givers), ("receiver", receivers)):
        unknown = set(counts) - expected
        if unknown:
            raise AssignmentInvariantError(f"unknown {side} ids: {sorted(map(str, unknown))}")
        repeated = [key for key, count in counts.items() if count > 1]
        if repeated:
            raise AssignmentInvariantError(
                f"{side} appears more than once: {sorted(map(str, repeated))}"
            )
        missing = expected - set(counts)
        if missing:
            raise AssignmentInvariantError(f"missing {side} ids: {sorted(map(str, missing))}")

    if any(giver == receiver for giver, receiver in pairs):
        raise AssignmentInvariantError("a member cannot be assigned to themselves")

    if require_single_cycle and pairs:
        cycle = follow_cycle(pairs, pairs[0][0])
        if len(cycle) != len(expected):
            raise AssignmentInvariantError(
                f"assignments form more than one cycle (first cycle covers "
                f"{len(cycle)} of {len(expected)} members)"
            )


__all__ = ["follow_cycle", "validate_assignments"]
