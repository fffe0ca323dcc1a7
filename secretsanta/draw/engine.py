"""Engine that draws, validates and persists gift assignments for a group."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
import random
from typing import Optional, Sequence

from .stores import AssignmentStore
from .strategies import DEFAULT_STRATEGY_KEY, DEFAULT_STRATEGY_REGISTRY, StrategyRegistry
from .validation import validate_assignments
from ..errors import (
    DrawStage,
    PartialFailureError,
    PreconditionError,
    StorageError,
    StorageUnavailableError,
)
from ..models import MIN_PARTICIPANTS, DrawResult, Group, GroupMember

logger = logging.getLogger(__name__)


@dataclass
class DrawOutcome:
    """Value object describing a completed draw.

    Attributes
    ----------
    group_id : str
        Group that was drawn.
    results : list[DrawResult]
        The new assignment set, one row per member, as written to storage.
    strategy_key : str
        Key of the strategy that produced the pairs.
    drawn_at : datetime
        When the draw was committed (UTC).
    """

    group_id: str
    results: list[DrawResult]
    strategy_key: str
    drawn_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def pairs(self) -> list[tuple[str, str]]:
        """Return ``(giver_id, receiver_id)`` for every result."""
        return [(r.giver_id, r.receiver_id) for r in self.results]


class DrawEngine:
    """Engine that turns a group's members into a persisted draw."""

    def __init__(
        self,
        store: AssignmentStore,
        *,
        registry: Optional[StrategyRegistry] = None,
        strategy_key: str = DEFAULT_STRATEGY_KEY,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Create a draw engine bound to a persistence store.

        Parameters
        ----------
        store : AssignmentStore
            Storage adapter used to read members and write results.
        registry : Optional[StrategyRegistry], default: None
            Registry holding assignment strategies. The default registry is
            used when omitted.
        strategy_key : str, default: "single_cycle"
            Strategy used for every draw run by this engine.
        rng : Optional[random.Random], default: None
            Random generator; pass a seeded ``random.Random`` for
            reproducible tests. Defaults to the OS entropy source.
        """

        self._store = store
        self._registry = registry or DEFAULT_STRATEGY_REGISTRY
        self._strategy = self._registry.get(strategy_key)
        self._rng = rng or random.SystemRandom()

    def perform_draw(
        self,
        group: Group,
        members: Optional[Sequence[GroupMember]] = None,
    ) -> DrawOutcome:
        """Draw ``group`` and replace any previous assignments.

        Parameters
        ----------
        group : Group
            Persisted group to draw. Re-drawing a group that is already drawn
            is allowed and yields a new, independent assignment.
        members : Optional[Sequence[GroupMember]], default: None
            Participants of the draw. When omitted they are loaded from the
            store.

        Returns
        -------
        DrawOutcome
            The new assignment set and draw metadata.

        Notes
        -----
        The draw performs the following steps:

        1. Validate the participants (no storage writes happen before this
           succeeds).
        2. Build ``(giver, receiver)`` pairs with the configured strategy and
           check them against the assignment invariants.
        3. In one store transaction: delete the old results, insert the new
           ones and finally set ``is_drawn`` on the group.

        Raises
        ------
        PreconditionError
            Fewer than three distinct members, members of another group, or
            unsaved rows.
        StorageUnavailableError
            The store could not be reached before anything was written.
        PartialFailureError
            The write sequence failed part-way; see its ``stage`` and
            ``changes_applied`` attributes.
        """

        if group.id is None:
            raise PreconditionError("Group must be persisted before running a draw")

        if members is None:
            members = self._store.list_members(group.id)
        member_ids = self._participant_ids(group, members)

        logger.info(
            f"Drawing group {group.id} with {len(member_ids)} members "
            f"using '{self._strategy.key}'"
        )
        pairs = self._strategy.build(member_ids, self._rng)
        validate_assignments(
            member_ids, pairs, require_single_cycle=self._strategy.single_cycle
        )
        results = [
            DrawResult(group_id=group.id, giver_id=giver, receiver_id=receiver)
            for giver, receiver in pairs
        ]

        self._write(group.id, results)
        group.is_drawn = True

        logger.info(f"Draw committed for group {group.id} ({len(results)} assignments)")
        return DrawOutcome(
            group_id=group.id,
            results=results,
            strategy_key=self._strategy.key,
        )

    def _participant_ids(
        self, group: Group, members: Sequence[GroupMember]
    ) -> list[str]:
        """Return member ids after checking every draw precondition."""

        ids: list[str] = []
        seen: set[str] = set()
        for member in members:
            if member.id is None:
                raise PreconditionError("Members must be persisted before running a draw")
            if member.group_id != group.id:
                raise PreconditionError(
                    f"Member {member.id} does not belong to group {group.id}"
                )
            if member.id in seen:
                raise PreconditionError(f"Member {member.id} is listed more than once")
            seen.add(member.id)
            ids.append(member.id)

        if len(ids) < MIN_PARTICIPANTS:
            raise PreconditionError(
                f"insufficient participants: a draw needs at least "
                f"{MIN_PARTICIPANTS} members, group {group.id} has {len(ids)}"
            )
        return ids

    def _write(self, group_id: str, results: list[DrawResult]) -> None:
        """Replace the stored results of ``group_id`` and flag it as drawn."""

        stage = DrawStage.NOT_STARTED
        try:
            with self._store.transaction():
                self._store.delete_assignments(group_id)
                stage = DrawStage.OLD_DELETED
                self._store.insert_assignments(results)
                stage = DrawStage.NEW_INSERTED
                self._store.update_group(group_id, {"is_drawn": True})
        except StorageError as exc:
            if stage is DrawStage.NOT_STARTED and isinstance(exc, StorageUnavailableError):
                raise
            error = PartialFailureError(
                group_id,
                stage,
                rolled_back=self._store.atomic,
                step_outcome_unknown=exc.outcome_unknown,
            )
            logger.error(str(error))
            raise error from exc


__all__ = ["DrawEngine", "DrawOutcome"]
