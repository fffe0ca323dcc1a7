"""Persistence adapters used by :class:`~secretsanta.draw.engine.DrawEngine`."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
import logging
from typing import TYPE_CHECKING, Any, Iterator, Mapping, Sequence

from sqlalchemy import delete, update
from sqlalchemy.exc import (
    DisconnectionError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.orm import Session

from ..db.utils import dt_iso
from ..errors import StorageError, StorageUnavailableError
from ..models import DrawResult, Group, GroupMember

if TYPE_CHECKING:
    from ..backend.api import BackendClient

logger = logging.getLogger(__name__)


class AssignmentStore(ABC):
    """Storage operations a draw needs.

    ``atomic`` tells the engine whether :meth:`transaction` really discards
    every write when the block fails. Non-atomic stores run the operations
    one after the other and leave earlier writes in place.
    """

    atomic: bool = False

    @contextmanager
    def transaction(self) -> Iterator[None]:
        yield

    @abstractmethod
    def list_members(self, group_id: str) -> list[GroupMember]:
        ...

    @abstractmethod
    def delete_assignments(self, group_id: str) -> None:
        ...

    @abstractmethod
    def insert_assignments(self, results: Sequence[DrawResult]) -> None:
        ...

    @abstractmethod
    def update_group(self, group_id: str, values: Mapping[str, Any]) -> None:
        ...


_UNAVAILABLE_ERRORS = (OperationalError, DisconnectionError, PoolTimeoutError)


class SqlAlchemyAssignmentStore(AssignmentStore):
    """Store backed by a SQLAlchemy session.

    Writes of one draw run inside a SAVEPOINT, so a failure rolls back to the
    state before the draw. The surrounding transaction (and its commit)
    belongs to the caller.
    """

    atomic = True

    def __init__(self, session: Session) -> None:
        self._session = session

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except _UNAVAILABLE_ERRORS as exc:
            logger.critical(f"Database unreachable during {operation}: {exc}")
            raise StorageUnavailableError(f"Database unreachable: {exc}") from exc
        except SQLAlchemyError as exc:
            logger.error(f"Database rejected {operation}: {exc}")
            raise StorageError(f"Database rejected {operation}: {exc}") from exc

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._guard("savepoint"):
            savepoint = self._session.begin_nested()
        try:
            yield
            # Releasing flushes pending objects, so it can fail like any write.
            with self._guard("savepoint release"):
                savepoint.commit()
        except Exception:
            # A failed flush already rolled back to the savepoint but leaves it
            # open in a deactivated state; it still has to be closed here.
            if self._session.get_nested_transaction() is savepoint:
                savepoint.rollback()
            raise

    def _expire_results(self, group_id: str) -> None:
        group = self._session.get(Group, group_id)
        if group is not None:
            self._session.expire(group, ["draw_results"])

    def list_members(self, group_id: str) -> list[GroupMember]:
        with self._guard("member lookup"):
            return GroupMember.list_for_group(self._session, group_id)

    def delete_assignments(self, group_id: str) -> None:
        with self._guard("assignment delete"):
            self._session.execute(
                delete(DrawResult).where(DrawResult.group_id == group_id)
            )
            self._expire_results(group_id)
        logger.debug(f"Deleted draw results of group {group_id}")

    def insert_assignments(self, results: Sequence[DrawResult]) -> None:
        with self._guard("assignment insert"):
            self._session.add_all(results)
            self._session.flush()
            for group_id in {r.group_id for r in results}:
                self._expire_results(group_id)
        logger.debug(f"Inserted {len(results)} draw results")

    def update_group(self, group_id: str, values: Mapping[str, Any]) -> None:
        payload = {"updated_at": datetime.now(timezone.utc), **values}
        with self._guard("group update"):
            result = self._session.execute(
                update(Group).where(Group.id == group_id).values(**payload)
            )
        if result.rowcount == 0:
            raise StorageError(f"Group {group_id} does not exist")
        logger.debug(f"Updated group {group_id}: {sorted(values)}")


class RestAssignmentStore(AssignmentStore):
    """Store backed by the hosted REST API; every call is its own request."""

    atomic = False

    def __init__(self, client: "BackendClient") -> None:
        self._client = client

    def list_members(self, group_id: str) -> list[GroupMember]:
        rows = self._client.select(
            "group_members", {"group_id": group_id}, order="created_at.asc"
        )
        return [GroupMember.from_json(row) for row in rows]

    def delete_assignments(self, group_id: str) -> None:
        self._client.delete("draw_results", {"group_id": group_id})

    def insert_assignments(self, results: Sequence[DrawResult]) -> None:
        # Let the backend fill server-side defaults such as ``created_at``.
        rows = [
            {key: value for key, value in r.to_json().items() if value is not None}
            for r in results
        ]
        self._client.insert("draw_results", rows)

    def update_group(self, group_id: str, values: Mapping[str, Any]) -> None:
        payload = {"updated_at": dt_iso(datetime.now(timezone.utc)), **values}
        updated = self._client.update("groups", payload, {"id": group_id})
        if not updated:
            raise StorageError(f"Group {group_id} does not exist or is not writable")


__all__ = ["AssignmentStore", "RestAssignmentStore", "SqlAlchemyAssignmentStore"]
