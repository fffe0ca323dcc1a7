"""Exception hierarchy shared by the draw engine, stores and workflows."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class SecretSantaError(Exception):
    """Base class for errors raised by this package."""


class PreconditionError(SecretSantaError, ValueError):
    """Input was rejected before any storage mutation took place."""


class AssignmentInvariantError(SecretSantaError, ValueError):
    """An assignment set violates coverage, bijection, self-gift or cycle rules."""


class NotFoundError(SecretSantaError, LookupError):
    """A row does not exist or is not owned by the requesting user."""


class StorageError(SecretSantaError):
    """The persistence backend rejected an operation.

    ``outcome_unknown`` is set when the request reached the backend but no
    answer came back, so the operation may or may not have been applied.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        outcome_unknown: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.outcome_unknown = outcome_unknown


class StorageUnavailableError(StorageError):
    """The persistence backend could not be reached at all."""


class DrawStage(str, Enum):
    """Last write step of a draw that is known to have completed."""

    NOT_STARTED = "not_started"
    OLD_DELETED = "old_deleted"
    NEW_INSERTED = "new_inserted"


class PartialFailureError(SecretSantaError):
    """The delete/insert/flag-update sequence of a draw did not complete.

    Attributes
    ----------
    group_id : str
        Group whose draw failed.
    stage : DrawStage
        Last step confirmed before the failure.
    rolled_back : bool
        ``True`` when the store discarded every write of the attempt, so
        storage still holds the previous draw (if any).
    step_outcome_unknown : bool
        ``True`` when the step that failed may have been applied anyway
        (e.g. a request that timed out after reaching the backend).
    """

    def __init__(
        self,
        group_id: str,
        stage: DrawStage,
        *,
        rolled_back: bool,
        step_outcome_unknown: bool = False,
    ) -> None:
        self.group_id = group_id
        self.stage = stage
        self.rolled_back = rolled_back
        self.step_outcome_unknown = step_outcome_unknown
        if self.changes_applied:
            detail = (
                "old assignments may be gone and new assignments may be missing; "
                "re-run the draw"
            )
        else:
            detail = "no changes were applied; the draw can be retried"
        super().__init__(
            f"Draw for group {group_id} failed after stage '{stage.value}': {detail}"
        )

    @property
    def changes_applied(self) -> bool:
        """Whether storage may now hold a deleted or half-written draw."""
        if self.rolled_back:
            return False
        return self.stage is not DrawStage.NOT_STARTED or self.step_outcome_unknown


__all__ = [
    "AssignmentInvariantError",
    "DrawStage",
    "NotFoundError",
    "PartialFailureError",
    "PreconditionError",
    "SecretSantaError",
    "StorageError",
    "StorageUnavailableError",
]
