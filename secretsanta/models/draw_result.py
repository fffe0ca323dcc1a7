"""Persisted outcome of a draw: one giver -> receiver pairing per member."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Mapping, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    false,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE, generate_id
from ..db.utils import dt_iso, parse_dt

if TYPE_CHECKING:
    from .group import Group, GroupMember


class DrawResult(Base):
    """One assignment of a draw.

    Rows are written in bulk for a whole group and replaced wholesale on a
    re-draw; only ``is_revealed`` is ever updated in place.
    """

    __tablename__ = "draw_results"

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=generate_id)
    """Primary key (UUID string)."""

    group_id: Mapped[str] = mapped_column(
        ID_TYPE, ForeignKey("groups.id"), nullable=False, index=True
    )
    """Group the draw belongs to."""

    giver_id: Mapped[str] = mapped_column(
        ID_TYPE, ForeignKey("group_members.id"), nullable=False
    )
    """Member who buys the gift."""

    receiver_id: Mapped[str] = mapped_column(
        ID_TYPE, ForeignKey("group_members.id"), nullable=False
    )
    """Member who receives the gift."""

    is_revealed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    """Stored for the backend schema; viewing sessions track reveals locally."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    group: Mapped["Group"] = relationship(back_populates="draw_results")
    giver: Mapped["GroupMember"] = relationship(foreign_keys=[giver_id])
    receiver: Mapped["GroupMember"] = relationship(foreign_keys=[receiver_id])

    __table_args__ = (
        UniqueConstraint("group_id", "giver_id", name="uq_draw_results_giver"),
        UniqueConstraint("group_id", "receiver_id", name="uq_draw_results_receiver"),
        CheckConstraint("giver_id <> receiver_id", name="no_self_assignment"),
    )

    def __init__(
        self,
        *,
        group_id: str,
        giver_id: str,
        receiver_id: str,
        is_revealed: bool = False,
        id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> None:
        # Ids are assigned eagerly so callers can reference a result (e.g. in
        # reveal state) before it has been flushed.
        self.id = id if id is not None else generate_id()
        self.group_id = group_id
        self.giver_id = giver_id
        self.receiver_id = receiver_id
        self.is_revealed = is_revealed
        if created_at is not None:
            self.created_at = created_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<DrawResult(id={id}, group_id={group}, giver_id={giver}, receiver_id={receiver})>".format(
            id=self.id,
            group=self.group_id,
            giver=self.giver_id,
            receiver=self.receiver_id,
        )

    @classmethod
    def list_for_group(cls, session: Session, group_id: str) -> list["DrawResult"]:
        stmt = select(cls).where(cls.group_id == group_id).order_by(cls.id.asc())
        return list(session.scalars(stmt).all())

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "group_id": self.group_id,
            "giver_id": self.giver_id,
            "receiver_id": self.receiver_id,
            "is_revealed": self.is_revealed,
            "created_at": dt_iso(self.created_at),
        }

    @classmethod
    def from_json(cls, row: Mapping[str, Any]) -> "DrawResult":
        return cls(
            id=row["id"],
            group_id=row["group_id"],
            giver_id=row["giver_id"],
            receiver_id=row["receiver_id"],
            is_revealed=bool(row.get("is_revealed", False)),
            created_at=parse_dt(row.get("created_at")),
        )


__all__ = ["DrawResult"]
