"""Per-view reveal state for the results of a drawn group.

Results start hidden and reveals are tracked by assignment id. Loading a
group, including the one already shown, discards every reveal.
"""

from __future__ import annotations

from typing import Iterable, Optional


class RevealState:
    """Which draw results have their receiver shown in the current view.

    This is a viewing convenience only. It is never written to storage and
    anyone who can load a group's results can reveal every entry.
    """

    def __init__(self) -> None:
        self._group_id: Optional[str] = None
        self._known: frozenset[str] = frozenset()
        self._revealed: set[str] = set()

    @property
    def group_id(self) -> Optional[str]:
        return self._group_id

    @property
    def revealed(self) -> frozenset[str]:
        return frozenset(self._revealed)

    def __len__(self) -> int:
        return len(self._revealed)

    def __contains__(self, assignment_id: object) -> bool:
        return assignment_id in self._revealed

    def load(self, group_id: str, assignment_ids: Iterable[str] = ()) -> None:
        """Start viewing ``group_id``; everything begins hidden.

        Parameters
        ----------
        group_id : str
            Group whose results are now being viewed. Reveals made for the
            previously loaded group are dropped, even if it is the same group.
        assignment_ids : Iterable[str], default: ()
            Ids of the loaded draw results. They become the default set for
            :meth:`reveal_all`.
        """
        self._group_id = group_id
        self._known = frozenset(assignment_ids)
        self._revealed = set()

    def is_revealed(self, assignment_id: str) -> bool:
        """Return whether the receiver of ``assignment_id`` is shown."""
        return assignment_id in self._revealed

    def toggle_reveal(self, assignment_id: str) -> bool:
        """Flip ``assignment_id`` and return whether it is now revealed.

        Unknown ids are simply added.
        """
        if assignment_id in self._revealed:
            self._revealed.discard(assignment_id)
            return False
        self._revealed.add(assignment_id)
        return True

    def reveal_all(self, assignment_ids: Optional[Iterable[str]] = None) -> None:
        """Replace the revealed set with ``assignment_ids``.

        Defaults to every id passed to :meth:`load`.
        """
        ids = self._known if assignment_ids is None else assignment_ids
        self._revealed = set(ids)

    def hide_all(self) -> None:
        """Hide every result again without forgetting the loaded ids."""
        self._revealed.clear()


__all__ = ["RevealState"]
